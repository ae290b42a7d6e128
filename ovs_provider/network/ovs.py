"""Open vSwitch (OVS) command adapter.

Thin async wrapper over ``ovs-vsctl`` and ``ovs-ofctl`` exposing the bridge
and port primitives the reconcilers need:

    add_bridge / set_bridge_protocols / delete_bridge / bridge_exists
    add_port / delete_port / list_ports / set_port_action

Every method raises ``OVSCommandError`` when the command exits non-zero.
Mutations are idempotent at the OVS level (``--may-exist`` / ``--if-exists``)
so that a caller re-driving a half-finished operation does not trip over
objects left behind by the previous attempt.

The client holds no switch state of its own. Its configuration (sudo mode,
binary paths, OpenFlow protocol list) is fixed at construction and it is
passed explicitly to each reconciler.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ovs_provider.errors import OVSCommandError
from ovs_provider.network.cmd import run_cmd, with_sudo
from ovs_provider.schemas import OFPortAction


logger = logging.getLogger(__name__)


# ovs-vsctl br-exists exit status when the bridge is not there
BR_EXISTS_MISSING = 2


def parse_list_ports_output(list_ports_output: str) -> list[str]:
    """Parse `ovs-vsctl list-ports <bridge>` output into port names."""
    return [p.strip() for p in list_ports_output.splitlines() if p.strip()]


class OVSClient:
    """Runs OVS commands for bridge and port management.

    Usage:
        client = OVSClient(use_sudo=True)
        await client.add_bridge("br0")
        await client.set_bridge_protocols("br0", ["OpenFlow13"])
        await client.add_port("br0", "tap0")
        await client.set_port_action("br0", "tap0", OFPortAction.UP)
    """

    def __init__(
        self,
        use_sudo: bool = True,
        vsctl_path: str = "ovs-vsctl",
        ofctl_path: str = "ovs-ofctl",
        protocols: Sequence[str] | None = None,
    ):
        self._use_sudo = use_sudo
        self._vsctl_path = vsctl_path
        self._ofctl_path = ofctl_path
        self._protocols = list(protocols or [])

    @property
    def use_sudo(self) -> bool:
        return self._use_sudo

    @property
    def protocols(self) -> list[str]:
        """OpenFlow protocols negotiated by ovs-ofctl."""
        return list(self._protocols)

    async def _exec(self, cmd: list[str]) -> tuple[int, str, str]:
        """Run a command; a binary that cannot be launched raises OVSCommandError."""
        full_cmd = with_sudo(cmd, self._use_sudo)
        try:
            code, stdout, stderr = await run_cmd(full_cmd)
        except OSError as e:
            raise OVSCommandError(cmd, -1, str(e)) from e
        logger.debug(f"{' '.join(full_cmd)} -> {code}")
        return code, stdout, stderr

    async def _vsctl(self, *args: str) -> str:
        """Run ovs-vsctl, raising on failure. Returns stdout."""
        cmd = [self._vsctl_path, *args]
        code, stdout, stderr = await self._exec(cmd)
        if code != 0:
            raise OVSCommandError(cmd, code, stderr)
        return stdout

    async def _ofctl(self, *args: str) -> str:
        """Run ovs-ofctl with the configured protocol list, raising on failure."""
        cmd = [self._ofctl_path]
        if self._protocols:
            cmd += ["-O", ",".join(self._protocols)]
        cmd += list(args)
        code, stdout, stderr = await self._exec(cmd)
        if code != 0:
            raise OVSCommandError(cmd, code, stderr)
        return stdout

    async def version(self) -> str:
        """Return the first line of `ovs-vsctl --version`."""
        stdout = await self._vsctl("--version")
        return stdout.strip().splitlines()[0] if stdout.strip() else ""

    # --- Bridges ---

    async def add_bridge(self, name: str) -> None:
        await self._vsctl("--may-exist", "add-br", name)

    async def set_bridge_protocols(self, name: str, protocols: Sequence[str]) -> None:
        """Restrict the OpenFlow versions a bridge speaks."""
        await self._vsctl("set", "bridge", name, f"protocols={','.join(protocols)}")

    async def delete_bridge(self, name: str) -> None:
        await self._vsctl("--if-exists", "del-br", name)

    async def bridge_exists(self, name: str) -> bool:
        """Check whether a bridge exists.

        ``br-exists`` exits 0 when the bridge exists and 2 when it does not.
        Any other status means the query itself failed (daemon down,
        permission denied) and is raised rather than reported as absence.
        """
        cmd = [self._vsctl_path, "br-exists", name]
        code, _, stderr = await self._exec(cmd)
        if code == 0:
            return True
        if code == BR_EXISTS_MISSING:
            return False
        raise OVSCommandError(cmd, code, stderr)

    # --- Ports ---

    async def add_port(self, bridge: str, port: str) -> None:
        await self._vsctl("--may-exist", "add-port", bridge, port)

    async def delete_port(self, bridge: str, port: str) -> None:
        await self._vsctl("--if-exists", "del-port", bridge, port)

    async def list_ports(self, bridge: str) -> list[str]:
        """List ports attached to a bridge. Fails if the bridge is missing."""
        stdout = await self._vsctl("list-ports", bridge)
        return parse_list_ports_output(stdout)

    async def set_port_action(self, bridge: str, port: str, action: OFPortAction) -> None:
        """Apply an operational action with `ovs-ofctl mod-port`."""
        await self._ofctl("mod-port", bridge, port, action.value)

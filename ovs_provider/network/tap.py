"""Tap devices backing OVS ports.

Each port gets a host tap device of the same name before it is attached to
the bridge. Tap devices created with ``ip tuntap`` are not persistent: they
disappear on reboot while the OVS port record survives.
"""

from __future__ import annotations

import getpass
import logging

from ovs_provider.errors import TapDeviceError
from ovs_provider.network.cmd import run_cmd, with_sudo


logger = logging.getLogger(__name__)


class TapDeviceManager:
    """Creates and deletes tap devices with `ip tuntap`."""

    def __init__(self, use_sudo: bool = True, ip_path: str = "/sbin/ip", owner: str = ""):
        self._use_sudo = use_sudo
        self._ip_path = ip_path
        self._owner = owner

    @property
    def owner(self) -> str:
        """User that owns created tap devices (the invoking user by default)."""
        return self._owner or getpass.getuser()

    async def _exec(self, cmd: list[str]) -> None:
        """Run ``ip``, raising TapDeviceError on failure or if it cannot be launched."""
        try:
            code, _, stderr = await run_cmd(with_sudo(cmd, self._use_sudo))
        except OSError as e:
            raise TapDeviceError(cmd, -1, str(e)) from e
        if code != 0:
            raise TapDeviceError(cmd, code, stderr)

    async def create(self, name: str, owner: str | None = None) -> None:
        """Create a tap device owned by ``owner``.

        Raises:
            TapDeviceError: If `ip tuntap add` fails (including when the
                device already exists) or the owner cannot be determined
        """
        cmd = [self._ip_path, "tuntap", "add", "dev", name, "mode", "tap", "user"]
        try:
            owner = owner or self.owner
        except (OSError, KeyError) as e:
            # getpass.getuser() with no login name and no passwd entry
            raise TapDeviceError(cmd, -1, f"cannot determine tap owner: {e}") from e
        await self._exec(cmd + [owner])
        logger.debug(f"Created tap device {name}")

    async def delete(self, name: str) -> None:
        """Delete a tap device.

        Raises:
            TapDeviceError: If `ip tuntap del` fails
        """
        await self._exec([self._ip_path, "tuntap", "del", "dev", name, "mode", "tap"])
        logger.debug(f"Deleted tap device {name}")

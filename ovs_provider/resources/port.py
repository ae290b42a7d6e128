"""OVS port resource.

A port has two halves: a host tap device of the same name, and the OVS port
record attaching that device to a bridge. The OVS half is authoritative. Tap
device failures are logged and returned as warnings but never abort an
operation: the device may survive from an earlier partial run, or may already
be gone after a reboot.

Port ids combine bridge and port names (``"br0:eth0"``).
"""

from __future__ import annotations

import logging

from ovs_provider.errors import (
    ConfigValidationError,
    OperationError,
    OVSCommandError,
    TapDeviceError,
)
from ovs_provider.identifiers import decode_port_id, encode_port_id
from ovs_provider.network.ovs import OVSClient
from ovs_provider.network.tap import TapDeviceManager
from ovs_provider.resources.base import Resource, ResourceState
from ovs_provider.schemas import OFPortAction, PortAction, PortConfig


logger = logging.getLogger(__name__)


# Configuration action -> mod-port action. "no-receive-stp" maps to
# receive-stp, matching the action set ovs-ofctl is driven with.
_PORT_ACTIONS: dict[str, OFPortAction] = {
    PortAction.UP.value: OFPortAction.UP,
    PortAction.DOWN.value: OFPortAction.DOWN,
    PortAction.STP.value: OFPortAction.STP,
    PortAction.NO_STP.value: OFPortAction.NO_STP,
    PortAction.RECEIVE.value: OFPortAction.RECEIVE,
    PortAction.NO_RECEIVE.value: OFPortAction.NO_RECEIVE,
    PortAction.NO_RECEIVE_STP.value: OFPortAction.RECEIVE_STP,
    PortAction.FORWARD.value: OFPortAction.FORWARD,
    PortAction.NO_FORWARD.value: OFPortAction.NO_FORWARD,
    PortAction.FLOOD.value: OFPortAction.FLOOD,
    PortAction.NO_FLOOD.value: OFPortAction.NO_FLOOD,
    PortAction.PACKET_IN.value: OFPortAction.PACKET_IN,
    PortAction.NO_PACKET_IN.value: OFPortAction.NO_PACKET_IN,
}


def get_port_action(action: str | PortAction | None) -> OFPortAction:
    """Map a configured action to the mod-port vocabulary.

    Matching is exact and case-sensitive. Anything unrecognized, including
    "UP", "Up" and the empty string, maps to ``OFPortAction.UP``.
    """
    if isinstance(action, PortAction):
        action = action.value
    return _PORT_ACTIONS.get(action or "", OFPortAction.UP)


class PortResource(Resource):
    """Reconciles one port on an OVS bridge.

    The parent bridge must already exist; ordering between bridge and port
    operations is the caller's job. Port action and protocol version are not
    read back from the switch.
    """

    type_name = "openvswitch_port"
    config_model = PortConfig
    identity_fields = ("bridge_id", "name")

    def __init__(self, ovs: OVSClient, taps: TapDeviceManager):
        self._ovs = ovs
        self._taps = taps

    def _names(self, state: ResourceState) -> tuple[str, str]:
        """(bridge, port) from the tracked id, or from config before one exists."""
        if state.id:
            return decode_port_id(state.id)
        if state.config is not None:
            return state.config.bridge_id, state.config.name
        raise ConfigValidationError(f"{self.type_name}: no id or configuration to identify the port")

    async def create(self, config: PortConfig) -> ResourceState:
        """Create the tap device, attach it and apply the port action.

        Raises:
            OperationError: If the port cannot be added to the bridge
        """
        config = self.parse_config(config)
        bridge, port = config.bridge_id, config.name
        resource_id = encode_port_id(bridge, port)
        warnings: list[str] = []

        try:
            await self._taps.create(port)
        except TapDeviceError as e:
            self._warn(warnings, resource_id, f"error creating tap device {port} (may already exist): {e}")

        try:
            await self._ovs.add_port(bridge, port)
        except OVSCommandError as e:
            raise OperationError("add_port", resource_id, f"error adding port to bridge: {e}", cause=e) from e

        try:
            await self._ovs.set_port_action(bridge, port, get_port_action(config.action))
        except OVSCommandError as e:
            self._warn(warnings, resource_id, f"error modifying port action: {e}")

        logger.info(
            f"Created port {port} on bridge {bridge} (action {config.action.value})",
            extra={"resource_type": self.type_name, "resource_id": resource_id},
        )
        state = await self.read(ResourceState(id=resource_id, config=config))
        state.warnings = warnings + state.warnings
        return state

    async def read(self, state: ResourceState) -> ResourceState:
        """Refresh the port from its bridge's port list.

        If the port list cannot be fetched the bridge is taken to be gone, and
        the port with it: the id is cleared and no error is raised.

        Raises:
            MalformedIdentifier: If the tracked id is not ``bridge:port``
        """
        bridge, port = self._names(state)
        resource_id = encode_port_id(bridge, port)
        log_extra = {"resource_type": self.type_name, "resource_id": resource_id}

        try:
            ports = await self._ovs.list_ports(bridge)
        except OVSCommandError as e:
            logger.warning(f"error listing ports (bridge may not exist): {e}", extra=log_extra)
            return ResourceState(config=state.config)

        if port not in ports:
            logger.info(f"Port {port} not found on bridge {bridge}, clearing tracked id", extra=log_extra)
            return ResourceState(config=state.config)

        if state.config is not None:
            config = state.config.model_copy(update={"name": port, "bridge_id": bridge})
        else:
            config = PortConfig(name=port, bridge_id=bridge)
        return ResourceState(id=resource_id, config=config)

    async def update(self, state: ResourceState, config: PortConfig) -> ResourceState:
        """Apply the port action.

        Raises:
            OperationError: If mod-port fails
        """
        config = self.parse_config(config)
        self.check_update(state, config)
        bridge, port = config.bridge_id, config.name
        resource_id = encode_port_id(bridge, port)

        try:
            await self._ovs.set_port_action(bridge, port, get_port_action(config.action))
        except OVSCommandError as e:
            raise OperationError("set_port_action", resource_id, f"error modifying port action: {e}", cause=e) from e

        logger.info(
            f"Set port {port} on bridge {bridge} to {config.action.value}",
            extra={"resource_type": self.type_name, "resource_id": resource_id},
        )
        return ResourceState(id=state.id or resource_id, config=config)

    async def delete(self, state: ResourceState) -> ResourceState:
        """Remove the tap device and detach the port.

        Raises:
            OperationError: If the port cannot be removed from the bridge
        """
        bridge, port = self._names(state)
        resource_id = encode_port_id(bridge, port)
        warnings: list[str] = []

        try:
            await self._taps.delete(port)
        except TapDeviceError as e:
            self._warn(warnings, resource_id, f"error deleting tap device: {e}")

        try:
            await self._ovs.delete_port(bridge, port)
        except OVSCommandError as e:
            raise OperationError("delete_port", resource_id, f"error deleting port from bridge: {e}", cause=e) from e

        logger.info(
            f"Deleted port {port} from bridge {bridge}",
            extra={"resource_type": self.type_name, "resource_id": resource_id},
        )
        cleared = state.cleared()
        cleared.warnings = warnings
        return cleared

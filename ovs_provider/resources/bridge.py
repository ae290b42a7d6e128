"""OVS bridge resource."""

from __future__ import annotations

import logging

from ovs_provider.errors import ConfigValidationError, OperationError, OVSCommandError
from ovs_provider.identifiers import bridge_id
from ovs_provider.network.ovs import OVSClient
from ovs_provider.resources.base import Resource, ResourceState
from ovs_provider.schemas import BridgeConfig


logger = logging.getLogger(__name__)


class BridgeResource(Resource):
    """Reconciles one OVS bridge.

    The bridge is identified by its name. Its OpenFlow protocol version is
    applied at creation and not read back from the switch: Read keeps
    whatever version the tracked state recorded.
    """

    type_name = "openvswitch_bridge"
    config_model = BridgeConfig
    identity_fields = ("name",)

    def __init__(self, ovs: OVSClient):
        self._ovs = ovs

    async def create(self, config: BridgeConfig) -> ResourceState:
        """Add the bridge and restrict its protocols.

        Raises:
            OperationError: If the bridge cannot be added (nothing was
                created), or if setting protocols fails after the bridge was
                added (``partial`` is set; Read to record what exists)
        """
        config = self.parse_config(config)
        name = config.name
        log_extra = {"resource_type": self.type_name, "resource_id": name}

        try:
            await self._ovs.add_bridge(name)
        except OVSCommandError as e:
            raise OperationError("add_bridge", name, f"error adding bridge {name}: {e}", cause=e) from e

        try:
            await self._ovs.set_bridge_protocols(name, [config.ofversion.value])
        except OVSCommandError as e:
            raise OperationError(
                "set_bridge_protocols",
                name,
                f"bridge {name} was added but setting protocols failed: {e}",
                cause=e,
                partial=True,
            ) from e

        logger.info(f"Created bridge {name} ({config.ofversion.value})", extra=log_extra)
        return await self.read(ResourceState(id=bridge_id(name), config=config))

    async def read(self, state: ResourceState) -> ResourceState:
        """Refresh the bridge from the switch.

        A bridge that no longer exists clears the id. A failing existence
        query is raised, not treated as absence.
        """
        name = state.id or (state.config.name if state.config is not None else "")
        if not name:
            return ResourceState(config=state.config)

        try:
            exists = await self._ovs.bridge_exists(name)
        except OVSCommandError as e:
            raise OperationError("bridge_exists", name, f"error checking bridge {name}: {e}", cause=e) from e

        if not exists:
            logger.info(
                f"Bridge {name} not found, clearing tracked id",
                extra={"resource_type": self.type_name, "resource_id": name},
            )
            return ResourceState(config=state.config)

        if state.config is not None:
            config = state.config.model_copy(update={"name": name})
        else:
            config = BridgeConfig(name=name)
        return ResourceState(id=bridge_id(name), config=config)

    async def update(self, state: ResourceState, config: BridgeConfig) -> ResourceState:
        """Nothing on a bridge is changed in place; record the config and read."""
        config = self.parse_config(config)
        self.check_update(state, config)
        return await self.read(ResourceState(id=state.id, config=config))

    async def delete(self, state: ResourceState) -> ResourceState:
        name = state.id or (state.config.name if state.config is not None else "")
        if not name:
            raise ConfigValidationError(f"{self.type_name}: nothing to delete (no id or name)")
        try:
            await self._ovs.delete_bridge(name)
        except OVSCommandError as e:
            raise OperationError("delete_bridge", name, f"error deleting bridge {name}: {e}", cause=e) from e

        logger.info(
            f"Deleted bridge {name}",
            extra={"resource_type": self.type_name, "resource_id": name},
        )
        return state.cleared()

"""Resource registry for the provider.

Maps resource type names to reconcilers. All reconcilers in one registry
share the OVS and tap adapters passed at construction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ovs_provider.network.ovs import OVSClient
from ovs_provider.network.tap import TapDeviceManager
from ovs_provider.resources.bridge import BridgeResource
from ovs_provider.resources.port import PortResource

if TYPE_CHECKING:
    from ovs_provider.config import Settings
    from ovs_provider.resources.base import Resource

logger = logging.getLogger(__name__)


class ResourceRegistry:
    """Resource types served by the provider."""

    def __init__(self, ovs: OVSClient, taps: TapDeviceManager):
        self.ovs = ovs
        self.taps = taps
        self._resources: dict[str, Resource] = {}
        for resource in (BridgeResource(ovs), PortResource(ovs, taps)):
            self._resources[resource.type_name] = resource

    def get(self, type_name: str) -> Resource | None:
        """Get a resource by type name (e.g. 'openvswitch_bridge').

        Returns:
            Resource instance if registered, None otherwise
        """
        return self._resources.get(type_name)

    def list_types(self) -> list[str]:
        """List all registered resource type names."""
        return list(self._resources.keys())

    def validate(self) -> list[str]:
        """Check every resource for internal consistency.

        Returns:
            List of problems found (empty when the registry is valid)
        """
        problems = []
        for type_name, resource in self._resources.items():
            if resource.type_name != type_name:
                problems.append(f"{type_name}: registered under the wrong name ({resource.type_name})")
            model = getattr(resource, "config_model", None)
            if model is None:
                problems.append(f"{type_name}: no configuration model")
                continue
            for field_name in resource.identity_fields:
                info = model.model_fields.get(field_name)
                if info is None:
                    problems.append(f"{type_name}: identity field {field_name!r} not in configuration")
                elif not info.is_required():
                    problems.append(f"{type_name}: identity field {field_name!r} must be required")
        return problems


def build_registry(settings: Settings) -> ResourceRegistry:
    """Construct the adapters from settings and register all resources."""
    ovs = OVSClient(
        use_sudo=settings.use_sudo,
        vsctl_path=settings.ovs_vsctl_path,
        ofctl_path=settings.ovs_ofctl_path,
        protocols=settings.openflow_protocols,
    )
    taps = TapDeviceManager(
        use_sudo=settings.use_sudo,
        ip_path=settings.ip_path,
        owner=settings.tap_owner,
    )
    registry = ResourceRegistry(ovs, taps)
    logger.info(f"Registered resources: {registry.list_types()}")
    return registry


# Process-wide registry for the HTTP surface; the reconcilers themselves
# always receive their adapters explicitly.
_registry: ResourceRegistry | None = None


def get_resource_registry() -> ResourceRegistry:
    """Return the process registry, building it from settings on first use."""
    global _registry
    if _registry is None:
        from ovs_provider.config import settings
        _registry = build_registry(settings)
    return _registry


def reset_resource_registry() -> None:
    """Reset the registry (mainly for testing)."""
    global _registry
    _registry = None

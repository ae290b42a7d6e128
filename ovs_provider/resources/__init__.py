"""Reconciled switch resources."""

from ovs_provider.resources.base import PlanAction, Resource, ResourceState
from ovs_provider.resources.bridge import BridgeResource
from ovs_provider.resources.port import PortResource, get_port_action
from ovs_provider.resources.registry import (
    ResourceRegistry,
    build_registry,
    get_resource_registry,
    reset_resource_registry,
)

__all__ = [
    # Base classes and types
    "Resource",
    "ResourceState",
    "PlanAction",
    # Resource implementations
    "BridgeResource",
    "PortResource",
    "get_port_action",
    # Registry
    "ResourceRegistry",
    "build_registry",
    "get_resource_registry",
    "reset_resource_registry",
]

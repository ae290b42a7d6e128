"""Tests for the resource registry."""

from ovs_provider.config import Settings
from ovs_provider.network.ovs import OVSClient
from ovs_provider.network.tap import TapDeviceManager
from ovs_provider.resources import (
    BridgeResource,
    PortResource,
    build_registry,
    get_resource_registry,
    reset_resource_registry,
)


def test_registry_types(registry):
    assert registry.list_types() == ["openvswitch_bridge", "openvswitch_port"]
    assert isinstance(registry.get("openvswitch_bridge"), BridgeResource)
    assert isinstance(registry.get("openvswitch_port"), PortResource)
    assert registry.get("openvswitch_mirror") is None


def test_registry_is_valid(registry):
    assert registry.validate() == []


def test_validate_reports_optional_identity_field(registry):
    port = registry.get("openvswitch_port")
    port.identity_fields = ("bridge_id", "action")
    try:
        problems = registry.validate()
    finally:
        del port.identity_fields
    assert problems == ["openvswitch_port: identity field 'action' must be required"]


def test_build_registry_from_settings():
    settings = Settings(use_sudo=False, openflow_protocols=["OpenFlow13"], tap_owner="alice")
    registry = build_registry(settings)

    assert isinstance(registry.ovs, OVSClient)
    assert isinstance(registry.taps, TapDeviceManager)
    assert registry.ovs.use_sudo is False
    assert registry.ovs.protocols == ["OpenFlow13"]
    assert registry.taps.owner == "alice"


def test_process_registry_is_cached():
    reset_resource_registry()
    try:
        assert get_resource_registry() is get_resource_registry()
    finally:
        reset_resource_registry()

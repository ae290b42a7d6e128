"""Shared pytest fixtures for provider tests."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from ovs_provider.errors import OVSCommandError, TapDeviceError
from ovs_provider.main import _resource_locks, app
from ovs_provider.resources.registry import ResourceRegistry, get_resource_registry
from ovs_provider.schemas import OFPortAction


# --- In-memory switch ---

class FakeOVSClient:
    """In-memory stand-in for OVSClient.

    ``fail`` maps a method name to the exit code it should fail with.
    """

    def __init__(self):
        self.bridges: dict[str, list[str]] = {}
        self.protocols_set: dict[str, list[str]] = {}
        self.port_actions: dict[tuple[str, str], OFPortAction] = {}
        self.calls: list[tuple] = []
        self.fail: dict[str, int] = {}
        self.use_sudo = False
        self.protocols = ["OpenFlow13"]

    def _maybe_fail(self, method: str, *args: str) -> None:
        self.calls.append((method, *args))
        if method in self.fail:
            raise OVSCommandError(["ovs-vsctl", method, *args], self.fail[method], f"{method} failed")

    async def version(self) -> str:
        self._maybe_fail("version")
        return "ovs-vsctl (Open vSwitch) 3.1.0"

    async def add_bridge(self, name: str) -> None:
        self._maybe_fail("add_bridge", name)
        self.bridges.setdefault(name, [])

    async def set_bridge_protocols(self, name: str, protocols) -> None:
        self._maybe_fail("set_bridge_protocols", name)
        self.protocols_set[name] = list(protocols)

    async def delete_bridge(self, name: str) -> None:
        self._maybe_fail("delete_bridge", name)
        self.bridges.pop(name, None)

    async def bridge_exists(self, name: str) -> bool:
        self._maybe_fail("bridge_exists", name)
        return name in self.bridges

    async def add_port(self, bridge: str, port: str) -> None:
        self._maybe_fail("add_port", bridge, port)
        if bridge not in self.bridges:
            raise OVSCommandError(["ovs-vsctl", "add-port", bridge, port], 1, f"no bridge named {bridge}")
        if port not in self.bridges[bridge]:
            self.bridges[bridge].append(port)

    async def delete_port(self, bridge: str, port: str) -> None:
        self._maybe_fail("delete_port", bridge, port)
        if bridge in self.bridges and port in self.bridges[bridge]:
            self.bridges[bridge].remove(port)

    async def list_ports(self, bridge: str) -> list[str]:
        self._maybe_fail("list_ports", bridge)
        if bridge not in self.bridges:
            raise OVSCommandError(["ovs-vsctl", "list-ports", bridge], 1, f"no bridge named {bridge}")
        return list(self.bridges[bridge])

    async def set_port_action(self, bridge: str, port: str, action: OFPortAction) -> None:
        self._maybe_fail("set_port_action", bridge, port, action.value)
        self.port_actions[(bridge, port)] = action


class FakeTapManager:
    """In-memory stand-in for TapDeviceManager."""

    owner = "tester"

    def __init__(self):
        self.devices: dict[str, str] = {}
        self.fail_create = False
        self.fail_delete = False

    async def create(self, name: str, owner: str | None = None) -> None:
        if self.fail_create or name in self.devices:
            raise TapDeviceError(["ip", "tuntap", "add", "dev", name], 1, "Device or resource busy")
        self.devices[name] = owner or self.owner

    async def delete(self, name: str) -> None:
        if self.fail_delete or name not in self.devices:
            raise TapDeviceError(["ip", "tuntap", "del", "dev", name], 1, "No such device")
        del self.devices[name]


@pytest.fixture
def fake_ovs() -> FakeOVSClient:
    return FakeOVSClient()


@pytest.fixture
def fake_taps() -> FakeTapManager:
    return FakeTapManager()


@pytest.fixture
def registry(fake_ovs, fake_taps) -> ResourceRegistry:
    return ResourceRegistry(fake_ovs, fake_taps)


@pytest.fixture
def bridge_resource(registry):
    return registry.get("openvswitch_bridge")


@pytest.fixture
def port_resource(registry):
    return registry.get("openvswitch_port")


@pytest.fixture(scope="function")
def test_client(registry):
    """FastAPI test client backed by the in-memory switch."""
    app.dependency_overrides[get_resource_registry] = lambda: registry
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
    _resource_locks.clear()

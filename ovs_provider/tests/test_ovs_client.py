"""Tests for the ovs-vsctl / ovs-ofctl adapter."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ovs_provider.errors import OVSCommandError
from ovs_provider.network.cmd import run_cmd, with_sudo
from ovs_provider.network.ovs import OVSClient, parse_list_ports_output
from ovs_provider.schemas import OFPortAction


def _ok(stdout: str = ""):
    return AsyncMock(return_value=(0, stdout, ""))


# --- cmd helpers ---

def test_with_sudo():
    assert with_sudo(["ovs-vsctl", "show"], True) == ["sudo", "ovs-vsctl", "show"]
    assert with_sudo(["ovs-vsctl", "show"], False) == ["ovs-vsctl", "show"]


@pytest.mark.asyncio
async def test_run_cmd_decodes_output():
    process = MagicMock()
    process.returncode = 1
    process.communicate = AsyncMock(return_value=(b"out\n", b"err\n"))

    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as mock_exec:
        result = await run_cmd(["ovs-vsctl", "show"])

    assert result == (1, "out\n", "err\n")
    assert mock_exec.call_args.args == ("ovs-vsctl", "show")


# --- parsing ---

def test_parse_list_ports_output():
    assert parse_list_ports_output("eth0\n  eth1 \n\n") == ["eth0", "eth1"]
    assert parse_list_ports_output("") == []


# --- commands ---

@pytest.mark.asyncio
async def test_add_bridge_uses_sudo_and_may_exist():
    client = OVSClient(use_sudo=True)
    with patch("ovs_provider.network.ovs.run_cmd", _ok()) as mock_run:
        await client.add_bridge("br0")
    mock_run.assert_awaited_once_with(["sudo", "ovs-vsctl", "--may-exist", "add-br", "br0"])


@pytest.mark.asyncio
async def test_commands_without_sudo():
    client = OVSClient(use_sudo=False, vsctl_path="/usr/bin/ovs-vsctl")
    with patch("ovs_provider.network.ovs.run_cmd", _ok()) as mock_run:
        await client.delete_bridge("br0")
    mock_run.assert_awaited_once_with(["/usr/bin/ovs-vsctl", "--if-exists", "del-br", "br0"])


@pytest.mark.asyncio
async def test_set_bridge_protocols():
    client = OVSClient(use_sudo=False)
    with patch("ovs_provider.network.ovs.run_cmd", _ok()) as mock_run:
        await client.set_bridge_protocols("br0", ["OpenFlow13"])
    mock_run.assert_awaited_once_with(["ovs-vsctl", "set", "bridge", "br0", "protocols=OpenFlow13"])


@pytest.mark.asyncio
@pytest.mark.parametrize("code,expected", [(0, True), (2, False)])
async def test_bridge_exists(code, expected):
    client = OVSClient(use_sudo=False)
    with patch("ovs_provider.network.ovs.run_cmd", AsyncMock(return_value=(code, "", ""))):
        assert await client.bridge_exists("br0") is expected


@pytest.mark.asyncio
async def test_bridge_exists_query_failure():
    client = OVSClient(use_sudo=False)
    with patch("ovs_provider.network.ovs.run_cmd", AsyncMock(return_value=(1, "", "database connection failed"))):
        with pytest.raises(OVSCommandError) as exc_info:
            await client.bridge_exists("br0")
    assert exc_info.value.returncode == 1
    assert "database connection failed" in str(exc_info.value)


@pytest.mark.asyncio
async def test_port_commands():
    client = OVSClient(use_sudo=False)
    with patch("ovs_provider.network.ovs.run_cmd", _ok()) as mock_run:
        await client.add_port("br0", "eth0")
        await client.delete_port("br0", "eth0")
    assert [c.args[0] for c in mock_run.await_args_list] == [
        ["ovs-vsctl", "--may-exist", "add-port", "br0", "eth0"],
        ["ovs-vsctl", "--if-exists", "del-port", "br0", "eth0"],
    ]


@pytest.mark.asyncio
async def test_list_ports():
    client = OVSClient(use_sudo=False)
    with patch("ovs_provider.network.ovs.run_cmd", _ok("eth0\neth1\n")):
        assert await client.list_ports("br0") == ["eth0", "eth1"]


@pytest.mark.asyncio
async def test_list_ports_failure():
    client = OVSClient(use_sudo=False)
    with patch("ovs_provider.network.ovs.run_cmd", AsyncMock(return_value=(1, "", "no bridge named br0"))):
        with pytest.raises(OVSCommandError):
            await client.list_ports("br0")


@pytest.mark.asyncio
async def test_set_port_action_passes_protocols():
    client = OVSClient(use_sudo=True, protocols=["OpenFlow10", "OpenFlow13"])
    with patch("ovs_provider.network.ovs.run_cmd", _ok()) as mock_run:
        await client.set_port_action("br0", "eth0", OFPortAction.RECEIVE_STP)
    mock_run.assert_awaited_once_with(
        ["sudo", "ovs-ofctl", "-O", "OpenFlow10,OpenFlow13", "mod-port", "br0", "eth0", "receive-stp"]
    )


@pytest.mark.asyncio
async def test_error_omits_sudo_from_command():
    client = OVSClient(use_sudo=True)
    with patch("ovs_provider.network.ovs.run_cmd", AsyncMock(return_value=(1, "", "boom"))):
        with pytest.raises(OVSCommandError) as exc_info:
            await client.add_bridge("br0")
    assert exc_info.value.cmd[0] == "ovs-vsctl"


@pytest.mark.asyncio
async def test_version():
    client = OVSClient(use_sudo=False)
    with patch("ovs_provider.network.ovs.run_cmd", _ok("ovs-vsctl (Open vSwitch) 3.1.0\nDB Schema 8.3.1\n")):
        assert await client.version() == "ovs-vsctl (Open vSwitch) 3.1.0"


@pytest.mark.asyncio
async def test_missing_vsctl_binary_raises_command_error():
    client = OVSClient(use_sudo=False, vsctl_path="/nonexistent/ovs-vsctl")

    with pytest.raises(OVSCommandError) as exc_info:
        await client.list_ports("br0")
    assert exc_info.value.returncode == -1
    assert exc_info.value.cmd == ["/nonexistent/ovs-vsctl", "list-ports", "br0"]

    with pytest.raises(OVSCommandError):
        await client.bridge_exists("br0")


@pytest.mark.asyncio
async def test_unlaunchable_command_raises_command_error():
    client = OVSClient(use_sudo=True)
    with patch("ovs_provider.network.ovs.run_cmd", AsyncMock(side_effect=PermissionError("Permission denied"))):
        with pytest.raises(OVSCommandError) as exc_info:
            await client.set_port_action("br0", "eth0", OFPortAction.UP)
    assert "Permission denied" in str(exc_info.value)

"""Adapters over the switch control plane and host network devices.

- OVS bridge/port primitives via ovs-vsctl and ovs-ofctl
- Tap devices backing OVS ports via ip tuntap
"""

from ovs_provider.network.ovs import OVSClient, parse_list_ports_output
from ovs_provider.network.tap import TapDeviceManager

__all__ = [
    "OVSClient",
    "parse_list_ports_output",
    "TapDeviceManager",
]

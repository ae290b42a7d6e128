"""Open vSwitch bridge and port reconciliation."""

from ovs_provider.version import __version__

__all__ = ["__version__"]

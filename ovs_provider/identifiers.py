"""Resource identifier encoding.

Bridges are tracked by their name. Ports live inside a bridge, so their
identifier combines both names: ``"<bridge>:<port>"``.
"""
from __future__ import annotations

from ovs_provider.errors import MalformedIdentifier

ID_SEPARATOR = ":"


def bridge_id(bridge_name: str) -> str:
    """Identifier for a bridge (its name)."""
    return bridge_name


def encode_port_id(bridge_name: str, port_name: str) -> str:
    """Build the compound identifier for a port.

    Raises:
        MalformedIdentifier: If either name is empty or contains the separator
    """
    for part in (bridge_name, port_name):
        if not part or ID_SEPARATOR in part:
            raise MalformedIdentifier(
                f"{bridge_name}{ID_SEPARATOR}{port_name}",
                reason=f"names must be non-empty and must not contain {ID_SEPARATOR!r}",
            )
    return f"{bridge_name}{ID_SEPARATOR}{port_name}"


def decode_port_id(resource_id: str) -> tuple[str, str]:
    """Split a port identifier into ``(bridge_name, port_name)``.

    Raises:
        MalformedIdentifier: Unless the id has exactly one separator with a
            non-empty name on each side
    """
    parts = resource_id.split(ID_SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise MalformedIdentifier(resource_id)
    return parts[0], parts[1]

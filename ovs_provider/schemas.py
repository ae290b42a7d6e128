"""Typed configuration and HTTP schemas.

Resource configuration arrives from the orchestrator as loosely typed JSON.
It is validated once, here, into ``BridgeConfig`` / ``PortConfig``; the
reconcilers only ever see the typed models.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ovs_provider.identifiers import ID_SEPARATOR
from ovs_provider.version import __version__


class ProtocolVersion(str, Enum):
    """OpenFlow protocol versions a bridge or port may be configured with."""
    OPENFLOW10 = "OpenFlow10"
    OPENFLOW11 = "OpenFlow11"
    OPENFLOW12 = "OpenFlow12"
    OPENFLOW13 = "OpenFlow13"
    OPENFLOW14 = "OpenFlow14"
    OPENFLOW15 = "OpenFlow15"


class PortAction(str, Enum):
    """Port action strings accepted in configuration."""
    UP = "up"
    DOWN = "down"
    STP = "stp"
    NO_STP = "no-stp"
    RECEIVE = "receive"
    NO_RECEIVE = "no-receive"
    NO_RECEIVE_STP = "no-receive-stp"
    FORWARD = "forward"
    NO_FORWARD = "no-forward"
    FLOOD = "flood"
    NO_FLOOD = "no-flood"
    PACKET_IN = "packet-in"
    NO_PACKET_IN = "no-packet-in"


class OFPortAction(str, Enum):
    """Actions understood by ``ovs-ofctl mod-port``."""
    UP = "up"
    DOWN = "down"
    STP = "stp"
    NO_STP = "no-stp"
    RECEIVE = "receive"
    NO_RECEIVE = "no-receive"
    RECEIVE_STP = "receive-stp"
    FORWARD = "forward"
    NO_FORWARD = "no-forward"
    FLOOD = "flood"
    NO_FLOOD = "no-flood"
    PACKET_IN = "packet-in"
    NO_PACKET_IN = "no-packet-in"


def _check_name(value: str) -> str:
    if ID_SEPARATOR in value:
        raise ValueError(f"must not contain {ID_SEPARATOR!r}")
    return value


# --- Resource configuration ---

class BridgeConfig(BaseModel):
    """Desired configuration of an OVS bridge."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        description="Name of the bridge to create",
        json_schema_extra={"force_new": True},
    )
    ofversion: ProtocolVersion = Field(
        ProtocolVersion.OPENFLOW13,
        description="OpenFlow protocol version (OpenFlow10 through OpenFlow15)",
    )

    @field_validator("name")
    @classmethod
    def name_has_no_separator(cls, value: str) -> str:
        return _check_name(value)


class PortConfig(BaseModel):
    """Desired configuration of a port attached to a bridge."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        description="Name of the port to create",
        json_schema_extra={"force_new": True},
    )
    bridge_id: str = Field(
        ...,
        min_length=1,
        description="Name of the bridge to attach the port to",
        json_schema_extra={"force_new": True},
    )
    action: PortAction = Field(
        PortAction.UP,
        description="Port action applied with ovs-ofctl mod-port",
    )
    ofversion: ProtocolVersion = Field(
        ProtocolVersion.OPENFLOW13,
        description="OpenFlow protocol version (OpenFlow10 through OpenFlow15)",
    )

    @field_validator("name", "bridge_id")
    @classmethod
    def names_have_no_separator(cls, value: str) -> str:
        return _check_name(value)


# --- HTTP surface ---

class ResourceRequest(BaseModel):
    """Orchestrator -> Provider: run one operation on one resource.

    ``state`` is the persisted record ``{"id": ..., "config": {...}}`` from the
    previous cycle (absent for create). ``config`` is the desired configuration
    (absent for read and delete).
    """
    state: dict[str, Any] | None = None
    config: dict[str, Any] | None = None


class ResourceStateResponse(BaseModel):
    """Provider -> Orchestrator: the state to persist after an operation."""
    id: str = ""
    exists: bool = False
    config: dict[str, Any] | None = None
    warnings: list[str] = Field(default_factory=list)
    action: str | None = None  # Plan action taken by /apply


class FieldSchema(BaseModel):
    """Description of one configuration field."""
    name: str
    type: str = "string"
    required: bool = False
    force_new: bool = False
    default: Any = None
    allowed_values: list[str] = Field(default_factory=list)
    description: str = ""


class ResourceSchemaResponse(BaseModel):
    """Configuration surface of one resource type."""
    type: str
    identity_fields: list[str] = Field(default_factory=list)
    fields: list[FieldSchema] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "ok"
    ovs_version: str | None = None
    error: str | None = None


class InfoResponse(BaseModel):
    version: str = __version__
    resource_types: list[str] = Field(default_factory=list)
    openflow_protocols: list[str] = Field(default_factory=list)
    use_sudo: bool = True

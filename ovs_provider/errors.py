"""Error types for the switch reconcilers.

Three kinds of failure reach the caller:

- ``ConfigValidationError``: the desired configuration or a tracked
  identifier is malformed. Raised before any command runs.
- ``OperationError``: a switch mutation that defines whether the resource
  exists failed (add/delete bridge, add/delete port, port action on update).
- Adapter errors (``OVSCommandError``, ``TapDeviceError``) are raised by the
  command wrappers and either wrapped in ``OperationError`` or downgraded to
  an advisory warning by the reconcilers.

A Read that finds the object gone is not an error: the tracked id is cleared
and the call returns normally.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class OVSProviderError(Exception):
    """Base class for provider errors."""


class ConfigValidationError(OVSProviderError):
    """Raised when configuration or an identifier fails validation."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class MalformedIdentifier(ConfigValidationError):
    """Raised when a compound identifier cannot be decoded."""

    def __init__(self, resource_id: str, reason: str = "expected 'bridge:port'"):
        self.resource_id = resource_id
        super().__init__(f"invalid ID format: {resource_id!r} ({reason})", field="id")


class CommandError(OVSProviderError):
    """Raised when an external command exits non-zero."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"{' '.join(cmd)} exited with {returncode}{detail}")


class OVSCommandError(CommandError):
    """Raised when ovs-vsctl or ovs-ofctl fails."""


class TapDeviceError(CommandError):
    """Raised when creating or deleting a tap device fails."""


class OperationError(OVSProviderError):
    """A fatal reconciliation failure surfaced to the caller.

    Attributes:
        operation: Name of the failed step (e.g. "add_port")
        resource_id: Identifier of the resource involved
        cause: Underlying adapter error, if any
        partial: True when earlier steps already changed the switch
    """

    def __init__(
        self,
        operation: str,
        resource_id: str,
        message: str,
        cause: Exception | None = None,
        partial: bool = False,
    ):
        self.operation = operation
        self.resource_id = resource_id
        self.cause = cause
        self.partial = partial
        super().__init__(message)


class ErrorCategory(str, Enum):
    """Categories used in structured error responses."""
    VALIDATION = "validation"
    OPERATION_FAILED = "operation_failed"
    PARTIAL_CREATE = "partial_create"
    QUERY_FAILED = "query_failed"
    TIMEOUT = "timeout"
    UNKNOWN_RESOURCE_TYPE = "unknown_resource_type"
    INTERNAL_ERROR = "internal_error"


@dataclass
class StructuredError:
    """Structured error representation returned by the HTTP surface."""
    category: ErrorCategory
    message: str
    details: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    operation: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "operation": self.operation,
            "timestamp": self.timestamp.isoformat(),
            "suggestions": self.suggestions,
        }


def categorize_error(error: Exception, resource_type: str | None = None) -> StructuredError:
    """Map a provider exception onto a StructuredError."""
    if isinstance(error, ConfigValidationError):
        return StructuredError(
            category=ErrorCategory.VALIDATION,
            message=str(error),
            resource_type=resource_type,
            resource_id=getattr(error, "resource_id", None),
        )

    if isinstance(error, OperationError):
        cause = str(error.cause) if error.cause else None
        if error.partial:
            return StructuredError(
                category=ErrorCategory.PARTIAL_CREATE,
                message=str(error),
                details=cause,
                resource_type=resource_type,
                resource_id=error.resource_id,
                operation=error.operation,
                suggestions=["Read the resource to record what exists, then retry"],
            )
        category = ErrorCategory.OPERATION_FAILED
        if isinstance(error.cause, OVSCommandError) and error.operation in ("bridge_exists", "list_ports"):
            category = ErrorCategory.QUERY_FAILED
        return StructuredError(
            category=category,
            message=str(error),
            details=cause,
            resource_type=resource_type,
            resource_id=error.resource_id,
            operation=error.operation,
        )

    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return StructuredError(
            category=ErrorCategory.TIMEOUT,
            message="Operation timed out",
            resource_type=resource_type,
            suggestions=["Read the resource to record what exists, then retry"],
        )

    return StructuredError(
        category=ErrorCategory.INTERNAL_ERROR,
        message=str(error) or type(error).__name__,
        resource_type=resource_type,
    )

"""Base resource interface for switch object reconciliation.

A resource type (bridge, port) implements four operations over one object:

    create(config)         -> state   materialize, then read back
    read(state)            -> state   refresh from the switch; id cleared if gone
    update(state, config)  -> state   apply mutable fields
    delete(state)          -> state   remove; returned state has no id

``ResourceState`` is what the orchestrator persists between cycles. An empty
``id`` means the object does not exist on the switch. Configuration fields
the switch cannot report back (protocol version, port action) are carried
over from the tracked state rather than re-derived.

``converge`` strings these together for a single resource: refresh, plan,
then invoke the one operation the plan calls for.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ovs_provider.errors import ConfigValidationError
from ovs_provider.schemas import FieldSchema


logger = logging.getLogger(__name__)


class PlanAction(str, Enum):
    """Operation chosen by ``Resource.plan``."""
    NOOP = "noop"
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"


@dataclass
class ResourceState:
    """Tracked state of one resource instance."""
    id: str = ""
    config: BaseModel | None = None
    warnings: list[str] = field(default_factory=list)  # Advisory, not persisted

    @property
    def exists(self) -> bool:
        return bool(self.id)

    def cleared(self) -> ResourceState:
        """Same record with the identifier reset (object gone)."""
        return ResourceState(id="", config=self.config)

    def to_dict(self) -> dict[str, Any]:
        """Persisted layout: ``{"id": ..., "config": {...}}``."""
        return {
            "id": self.id,
            "config": self.config.model_dump(mode="json") if self.config is not None else None,
        }


class Resource(ABC):
    """Abstract base class for reconciled switch resources."""

    type_name: str = ""
    config_model: type[BaseModel]
    # Fields that name the object on the switch; changing one forces replacement
    identity_fields: tuple[str, ...] = ()

    # --- Configuration boundary ---

    def parse_config(self, data: dict[str, Any] | BaseModel) -> BaseModel:
        """Validate raw configuration into the typed model.

        Raises:
            ConfigValidationError: If any field is missing or invalid
        """
        if isinstance(data, self.config_model):
            return data
        if isinstance(data, BaseModel):
            data = data.model_dump()
        try:
            return self.config_model.model_validate(data)
        except PydanticValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            loc = ".".join(str(p) for p in first.get("loc", ()))
            raise ConfigValidationError(
                f"invalid {self.type_name} configuration: "
                + "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()),
                field=loc or None,
            ) from e

    def load_state(self, data: dict[str, Any] | None) -> ResourceState:
        """Build a ResourceState from its persisted layout."""
        if not data:
            return ResourceState()
        config = data.get("config")
        return ResourceState(
            id=str(data.get("id") or ""),
            config=self.parse_config(config) if config is not None else None,
        )

    def describe(self) -> list[FieldSchema]:
        """Describe the configuration surface of this resource type."""
        fields = []
        for name, info in self.config_model.model_fields.items():
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            annotation = info.annotation
            allowed: list[str] = []
            if isinstance(annotation, type) and issubclass(annotation, Enum):
                allowed = [member.value for member in annotation]
            default = None if info.is_required() else info.default
            if isinstance(default, Enum):
                default = default.value
            fields.append(FieldSchema(
                name=name,
                required=info.is_required(),
                force_new=bool(extra.get("force_new", False)),
                default=default,
                allowed_values=allowed,
                description=info.description or "",
            ))
        return fields

    # --- Operations ---

    @abstractmethod
    async def create(self, config: BaseModel) -> ResourceState:
        """Materialize the resource, then read it back."""
        ...

    @abstractmethod
    async def read(self, state: ResourceState) -> ResourceState:
        """Refresh tracked state from the switch.

        Returns the state with ``id`` cleared when the object no longer
        exists. Absence is not an error.
        """
        ...

    @abstractmethod
    async def update(self, state: ResourceState, config: BaseModel) -> ResourceState:
        """Apply changes to mutable fields."""
        ...

    @abstractmethod
    async def delete(self, state: ResourceState) -> ResourceState:
        """Remove the resource. The returned state has an empty ``id``."""
        ...

    # --- Reconciliation ---

    def requires_replacement(self, current: BaseModel | None, desired: BaseModel) -> bool:
        """True when an identity field differs between the two configs."""
        if current is None:
            return False
        return any(
            getattr(current, name) != getattr(desired, name)
            for name in self.identity_fields
        )

    def check_update(self, state: ResourceState, config: BaseModel) -> None:
        """Reject in-place updates that would change identity fields."""
        if self.requires_replacement(state.config, config):
            changed = [
                name for name in self.identity_fields
                if getattr(state.config, name) != getattr(config, name)
            ]
            raise ConfigValidationError(
                f"{self.type_name}: changing {', '.join(changed)} requires replacement",
                field=changed[0],
            )

    def plan(self, state: ResourceState, desired: BaseModel | None) -> PlanAction:
        """Decide which operation brings ``state`` to ``desired``.

        ``state`` should be freshly read so that drift (objects removed
        outside this tool) shows up as a missing id.
        """
        if desired is None:
            return PlanAction.DELETE if state.exists else PlanAction.NOOP
        if not state.exists:
            return PlanAction.CREATE
        if state.config is None:
            return PlanAction.UPDATE
        if self.requires_replacement(state.config, desired):
            return PlanAction.REPLACE
        if state.config != desired:
            return PlanAction.UPDATE
        return PlanAction.NOOP

    async def converge(
        self,
        state: ResourceState | None,
        desired: BaseModel | None,
    ) -> tuple[PlanAction, ResourceState]:
        """Refresh, plan and apply for a single resource.

        Args:
            state: Previously persisted state (None if never created)
            desired: Desired configuration (None to remove the resource)

        Returns:
            Tuple of (action taken, new state)
        """
        state = state or ResourceState()
        if desired is not None:
            desired = self.parse_config(desired)

        if state.exists:
            refreshed = await self.read(state)
            if not refreshed.exists:
                logger.info(
                    f"{self.type_name} {state.id} disappeared outside the provider",
                    extra={"resource_type": self.type_name, "resource_id": state.id},
                )
            state = refreshed

        action = self.plan(state, desired)
        logger.debug(f"{self.type_name} {state.id or '<new>'}: plan {action.value}")

        if action == PlanAction.CREATE:
            return action, await self.create(desired)
        if action == PlanAction.REPLACE:
            await self.delete(state)
            return action, await self.create(desired)
        if action == PlanAction.UPDATE:
            return action, await self.update(state, desired)
        if action == PlanAction.DELETE:
            return action, await self.delete(state)
        return action, state

    # --- Helpers ---

    def _warn(self, state_warnings: list[str], resource_id: str, message: str) -> None:
        """Record an advisory warning: logged, returned with the state, never raised."""
        logger.warning(
            message,
            extra={"resource_type": self.type_name, "resource_id": resource_id},
        )
        state_warnings.append(message)

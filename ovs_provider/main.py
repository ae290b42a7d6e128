"""Provider HTTP surface.

Exposes the bridge and port reconcilers to an orchestrator. The orchestrator
owns persisted state: each request carries the last state it stored and the
desired configuration, and each response is the state to store next.

    POST /resources/{type}/create   {"config": {...}}
    POST /resources/{type}/read     {"state": {...}}
    POST /resources/{type}/update   {"state": {...}, "config": {...}}
    POST /resources/{type}/delete   {"state": {...}}
    POST /resources/{type}/apply    {"state": {...}|null, "config": {...}|null}
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Awaitable

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from ovs_provider.config import settings
from ovs_provider.errors import (
    ConfigValidationError,
    ErrorCategory,
    OperationError,
    OVSCommandError,
    StructuredError,
    categorize_error,
)
from ovs_provider.identifiers import ID_SEPARATOR
from ovs_provider.logging_config import setup_logging
from ovs_provider.resources.base import PlanAction, Resource, ResourceState
from ovs_provider.resources.registry import ResourceRegistry, get_resource_registry
from ovs_provider.schemas import (
    HealthResponse,
    InfoResponse,
    ResourceRequest,
    ResourceSchemaResponse,
    ResourceStateResponse,
)
from ovs_provider.version import __version__

# Configure structured logging
setup_logging()
logger = logging.getLogger(__name__)

# Operations on the same resource are serialized. Maps "type:id" -> lock
_resource_locks: dict[str, asyncio.Lock] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate the resource registry on startup."""
    registry = get_resource_registry()
    problems = registry.validate()
    for problem in problems:
        logger.error(f"Resource registry problem: {problem}")
    logger.info(f"ovs-provider {__version__} serving {registry.list_types()} (sudo={settings.use_sudo})")
    yield
    logger.info("ovs-provider shutting down")


app = FastAPI(
    title="OVS Provider",
    version=__version__,
    lifespan=lifespan,
)


# --- Helpers ---

def _get_resource(type_name: str, registry: ResourceRegistry) -> Resource:
    resource = registry.get(type_name)
    if resource is None:
        error = StructuredError(
            category=ErrorCategory.UNKNOWN_RESOURCE_TYPE,
            message=f"Unknown resource type '{type_name}'",
            resource_type=type_name,
            suggestions=[f"Use one of: {', '.join(registry.list_types())}"],
        )
        raise HTTPException(status_code=404, detail=error.to_dict())
    return resource


def _lock_key(resource: Resource, state: ResourceState, config: BaseModel | None) -> str:
    """Identity of the resource a request targets."""
    if state.id:
        key = state.id
    else:
        source = config if config is not None else state.config
        key = ID_SEPARATOR.join(str(getattr(source, f, "")) for f in resource.identity_fields) if source else ""
    return f"{resource.type_name}:{key}"


def _to_response(state: ResourceState, action: PlanAction | None = None) -> ResourceStateResponse:
    persisted = state.to_dict()
    return ResourceStateResponse(
        id=persisted["id"],
        exists=state.exists,
        config=persisted["config"],
        warnings=state.warnings,
        action=action.value if action is not None else None,
    )


def _parse_request(
    resource: Resource,
    request: ResourceRequest,
    need_state: bool = False,
    need_config: bool = False,
) -> tuple[ResourceState, BaseModel | None]:
    """Validate the request body before anything touches the switch."""
    try:
        if need_state and request.state is None:
            raise ConfigValidationError("'state' is required for this operation", field="state")
        if need_config and request.config is None:
            raise ConfigValidationError("'config' is required for this operation", field="config")
        state = resource.load_state(request.state)
        config = resource.parse_config(request.config) if request.config is not None else None
    except ConfigValidationError as e:
        raise HTTPException(status_code=422, detail=categorize_error(e, resource.type_name).to_dict())
    return state, config


async def _run(resource: Resource, key: str, operation: str, call: Awaitable):
    """Run one reconciler call under the resource lock and time limit.

    Maps provider errors onto HTTP errors with a structured body.
    """
    if key not in _resource_locks:
        _resource_locks[key] = asyncio.Lock()
    lock = _resource_locks[key]
    try:
        async with lock:
            return await asyncio.wait_for(call, timeout=settings.command_timeout)
    except ConfigValidationError as e:
        raise HTTPException(status_code=422, detail=categorize_error(e, resource.type_name).to_dict())
    except OperationError as e:
        logger.error(
            f"{resource.type_name} {operation} failed: {e}",
            extra={"resource_type": resource.type_name, "resource_id": e.resource_id},
        )
        raise HTTPException(status_code=502, detail=categorize_error(e, resource.type_name).to_dict())
    except asyncio.TimeoutError as e:
        logger.error(f"{resource.type_name} {operation} timed out after {settings.command_timeout}s")
        raise HTTPException(status_code=504, detail=categorize_error(e, resource.type_name).to_dict())
    except Exception as e:
        logger.exception(f"{resource.type_name} {operation} failed unexpectedly: {e}")
        raise HTTPException(status_code=500, detail=categorize_error(e, resource.type_name).to_dict())


# --- Health Endpoints ---

@app.get("/health")
async def health(registry: ResourceRegistry = Depends(get_resource_registry)) -> HealthResponse:
    """Health check that probes ovs-vsctl."""
    try:
        version = await registry.ovs.version()
    except (OVSCommandError, OSError) as e:
        return HealthResponse(status="degraded", error=str(e))
    return HealthResponse(status="ok", ovs_version=version)


@app.get("/info")
def info(registry: ResourceRegistry = Depends(get_resource_registry)) -> InfoResponse:
    """Return provider version and capabilities."""
    return InfoResponse(
        resource_types=registry.list_types(),
        openflow_protocols=registry.ovs.protocols,
        use_sudo=registry.ovs.use_sudo,
    )


# --- Resource schema ---

@app.get("/resources")
def list_resources(registry: ResourceRegistry = Depends(get_resource_registry)) -> list[ResourceSchemaResponse]:
    """Describe every resource type's configuration surface."""
    return [
        describe_resource(type_name, registry)
        for type_name in registry.list_types()
    ]


@app.get("/resources/{type_name}/schema")
def describe_resource(
    type_name: str,
    registry: ResourceRegistry = Depends(get_resource_registry),
) -> ResourceSchemaResponse:
    resource = _get_resource(type_name, registry)
    return ResourceSchemaResponse(
        type=resource.type_name,
        identity_fields=list(resource.identity_fields),
        fields=resource.describe(),
    )


# --- Resource operations ---

@app.post("/resources/{type_name}/create")
async def create_resource(
    type_name: str,
    request: ResourceRequest,
    registry: ResourceRegistry = Depends(get_resource_registry),
) -> ResourceStateResponse:
    resource = _get_resource(type_name, registry)
    _, config = _parse_request(resource, request, need_config=True)
    key = _lock_key(resource, ResourceState(), config)
    new_state = await _run(resource, key, "create", resource.create(config))
    return _to_response(new_state)


@app.post("/resources/{type_name}/read")
async def read_resource(
    type_name: str,
    request: ResourceRequest,
    registry: ResourceRegistry = Depends(get_resource_registry),
) -> ResourceStateResponse:
    resource = _get_resource(type_name, registry)
    state, _ = _parse_request(resource, request, need_state=True)
    key = _lock_key(resource, state, None)
    new_state = await _run(resource, key, "read", resource.read(state))
    return _to_response(new_state)


@app.post("/resources/{type_name}/update")
async def update_resource(
    type_name: str,
    request: ResourceRequest,
    registry: ResourceRegistry = Depends(get_resource_registry),
) -> ResourceStateResponse:
    resource = _get_resource(type_name, registry)
    state, config = _parse_request(resource, request, need_state=True, need_config=True)
    key = _lock_key(resource, state, config)
    new_state = await _run(resource, key, "update", resource.update(state, config))
    return _to_response(new_state)


@app.post("/resources/{type_name}/delete")
async def delete_resource(
    type_name: str,
    request: ResourceRequest,
    registry: ResourceRegistry = Depends(get_resource_registry),
) -> ResourceStateResponse:
    resource = _get_resource(type_name, registry)
    state, _ = _parse_request(resource, request, need_state=True)
    key = _lock_key(resource, state, None)
    new_state = await _run(resource, key, "delete", resource.delete(state))
    return _to_response(new_state)


@app.post("/resources/{type_name}/apply")
async def apply_resource(
    type_name: str,
    request: ResourceRequest,
    registry: ResourceRegistry = Depends(get_resource_registry),
) -> ResourceStateResponse:
    """Refresh, plan and apply in one call. ``config: null`` removes the resource."""
    resource = _get_resource(type_name, registry)
    state, config = _parse_request(resource, request)
    key = _lock_key(resource, state, config)
    action, new_state = await _run(resource, key, "apply", resource.converge(state, config))
    return _to_response(new_state, action)


# --- Entry point ---

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ovs_provider.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )

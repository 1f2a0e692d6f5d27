"""Router factory for the configuration endpoints.

Every kind gets the same nine endpoints under ``/{kind}``; only the request
and response models differ. Handlers stay thin: they build a
``RegistryEngine`` over the request's store and hand its records to the
response model.
"""

from collections.abc import Callable, Coroutine
from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, status

from revenue.api.schemas.configurations import DeleteResponse, KindSchemas
from revenue.api.schemas.errors import ErrorResponse
from revenue.core.config import Settings
from revenue.domain.registry.engine import Clock, RegistryEngine, zoned_clock
from revenue.domain.registry.kinds import ConfigurationKind
from revenue.infrastructure.dependencies import ConfigurationStoreDep

type EngineFactory = Callable[..., Coroutine[Any, Any, RegistryEngine]]

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def get_clock(request: Request) -> Clock:
    """Clock for the configured registry timezone."""
    settings: Settings = request.app.state.settings
    return zoned_clock(settings.registry_config.timezone)


def engine_dependency(kind: ConfigurationKind) -> EngineFactory:
    """FastAPI dependency building the engine of ``kind`` for one request."""

    async def get_engine(
        store: ConfigurationStoreDep, clock: Annotated[Clock, Depends(get_clock)]
    ) -> RegistryEngine:
        return RegistryEngine(kind, store, clock=clock)

    return get_engine


def _natural_key_params(
    request: Request, kind: ConfigurationKind
) -> dict[str, str]:
    return {
        name: request.query_params[name]
        for name in kind.natural_key
        if name in request.query_params
    }


def build_router(kind: ConfigurationKind, schemas: KindSchemas) -> APIRouter:
    """Build the router serving one configuration kind.

    Args:
        kind: Configuration kind descriptor.
        schemas: Request and response models of the kind.

    Returns:
        APIRouter: Router with prefix ``/{kind.name}``.
    """
    router = APIRouter(
        prefix=f"/{kind.name}",
        tags=[kind.label],
        responses=_ERROR_RESPONSES,
    )
    engine_dep = Annotated[RegistryEngine, Depends(engine_dependency(kind))]
    create_model, patch_model, out_model = schemas

    @router.get("", response_model=list[out_model], summary=f"List {kind.label}")
    async def list_configurations(
        engine: engine_dep,
        as_of: Annotated[
            date | None, Query(description="Day the versions must cover")
        ] = None,
    ) -> list[dict[str, Any]]:
        """Versions in force on ``as_of`` (default today), in stable order."""
        return [record.as_dict() for record in await engine.list_effective(as_of)]

    @router.get("/history", response_model=list[out_model])
    async def history(request: Request, engine: engine_dep) -> list[dict[str, Any]]:
        """Every stored version, optionally filtered by natural key fields."""
        records = await engine.history(_natural_key_params(request, kind))
        return [record.as_dict() for record in records]

    @router.get("/resolve", response_model=out_model)
    async def resolve(
        request: Request,
        engine: engine_dep,
        on: Annotated[date | None, Query(description="Day to resolve for")] = None,
    ) -> dict[str, Any]:
        """The version of one natural key that applies on ``on``."""
        record = await engine.resolve(_natural_key_params(request, kind), on)
        return record.as_dict()

    @router.get("/{record_id}", response_model=out_model)
    async def get_configuration(
        record_id: int, engine: engine_dep
    ) -> dict[str, Any]:
        return (await engine.get(record_id)).as_dict()

    @router.post("", response_model=out_model, status_code=status.HTTP_201_CREATED)
    async def create_configuration(
        payload: create_model, engine: engine_dep
    ) -> dict[str, Any]:
        record = await engine.create(payload.model_dump())
        return record.as_dict()

    @router.put("/{record_id}", response_model=out_model)
    async def replace_configuration(
        record_id: int, payload: create_model, engine: engine_dep
    ) -> dict[str, Any]:
        record = await engine.replace(record_id, payload.model_dump())
        return record.as_dict()

    @router.patch("/{record_id}", response_model=out_model)
    async def patch_configuration(
        record_id: int, payload: patch_model, engine: engine_dep
    ) -> dict[str, Any]:
        """Change only the supplied fields; unknown fields are ignored."""
        fields = payload.model_dump(exclude_unset=True)
        record = await engine.patch(record_id, fields)
        return record.as_dict()

    @router.post("/{record_id}/expire", response_model=out_model)
    async def expire_configuration(
        record_id: int, engine: engine_dep
    ) -> dict[str, Any]:
        """Soft-expire a version as of today."""
        return (await engine.expire(record_id)).as_dict()

    @router.delete("/{record_id}", response_model=DeleteResponse)
    async def delete_configuration(
        record_id: int, engine: engine_dep
    ) -> DeleteResponse:
        deleted_id = await engine.delete(record_id)
        return DeleteResponse(
            message=f"{kind.label} {deleted_id} deleted", id=deleted_id
        )

    return router

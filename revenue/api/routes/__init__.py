"""HTTP routes, one router per configuration kind."""

from fastapi import FastAPI

from revenue.api.constants import API_PREFIX
from revenue.api.routes.configurations import build_router
from revenue.api.schemas.configurations import SCHEMAS
from revenue.domain.registry.kinds import KINDS


def include_configuration_routes(app: FastAPI) -> None:
    """Mount ``/api/v1/configurations/<kind>`` for every kind."""
    for name, kind in KINDS.items():
        app.include_router(build_router(kind, SCHEMAS[name]), prefix=API_PREFIX)

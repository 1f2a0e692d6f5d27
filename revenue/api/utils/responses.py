"""JSON responses serialized with orjson.

``ORJSONResponse`` is the application's default response class. Keys are
sorted for stable output, and ``Decimal`` values (rates and amounts) are
written as strings so no precision is lost on the way to the client.
"""

from decimal import Decimal
from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel


def _default(value: object) -> object:
    """Serialize types orjson does not handle natively."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")


class ORJSONResponse(JSONResponse):
    """JSONResponse rendered with orjson."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json")
        return orjson.dumps(content, default=_default, option=orjson.OPT_SORT_KEYS)

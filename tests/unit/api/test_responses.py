"""Unit tests for revenue/api/utils/responses.py."""

from datetime import date
from decimal import Decimal

import orjson
import pytest

from revenue.api.schemas.configurations import DeleteResponse
from revenue.api.utils.responses import ORJSONResponse


@pytest.mark.unit
class TestORJSONResponse:
    """Test orjson rendering."""

    def test_decimals_render_as_strings(self) -> None:
        """Test that rates keep their exact digits."""
        body = ORJSONResponse(content={"tax_percent": Decimal("2.5000")}).body

        assert orjson.loads(body) == {"tax_percent": "2.5000"}

    def test_dates_and_sorted_keys(self) -> None:
        """Test ISO dates and stable key order."""
        body = ORJSONResponse(
            content={"b": 1, "a": date(2024, 1, 1)}
        ).body

        assert body == b'{"a":"2024-01-01","b":1}'

    def test_pydantic_models(self) -> None:
        """Test that models are dumped in JSON mode."""
        body = ORJSONResponse(content=DeleteResponse(message="gone", id=3)).body

        assert orjson.loads(body) == {"id": 3, "message": "gone"}

    def test_unknown_types_raise(self) -> None:
        """Test that unsupported values are not silently dropped."""
        with pytest.raises(TypeError):
            ORJSONResponse(content={"value": object()})

"""Unit tests for revenue/api/middleware/error_handler.py."""

from datetime import date

import orjson
import pytest
from fastapi import status
from fastapi.exceptions import RequestValidationError
from pytest_mock import MockerFixture, MockType
from starlette.exceptions import HTTPException

from revenue.api.middleware.error_handler import (
    generic_exception_handler,
    get_service_info,
    http_exception_handler,
    revenue_error_handler,
    status_for,
    validation_error_handler,
)
from revenue.core.config import Settings
from revenue.core.context import RequestContext
from revenue.core.exceptions import (
    ConflictError,
    ErrorCode,
    NotFoundError,
    RevenueError,
    StoreUnavailableError,
    ValidationError,
)


@pytest.fixture
def settings() -> Settings:
    """Development settings."""
    return Settings(environment="development", app_name="Registry Test")


@pytest.fixture
def mock_request(mocker: MockerFixture, settings: Settings) -> MockType:
    """Request carrying the settings on app.state."""
    request = mocker.Mock()
    request.method = "POST"
    request.url.path = "/api/v1/configurations/rpt-tax/"
    request.app.state.settings = settings
    return request


@pytest.mark.unit
class TestStatusMapping:
    """Test error to status mapping."""

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (ValidationError("bad"), status.HTTP_400_BAD_REQUEST),
            (NotFoundError("missing"), status.HTTP_404_NOT_FOUND),
            (
                ConflictError("overlap", {"tax_name": "X"}, (date(2024, 1, 1), None)),
                status.HTTP_409_CONFLICT,
            ),
            (StoreUnavailableError("down"), status.HTTP_500_INTERNAL_SERVER_ERROR),
            (
                RevenueError(ErrorCode.INTERNAL_ERROR, "?"),
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            ),
        ],
    )
    def test_status_for(self, error: RevenueError, expected: int) -> None:
        """Test each registry error class."""
        assert status_for(error) == expected

    def test_service_info(self, settings: Settings) -> None:
        """Test that service info mirrors settings."""
        info = get_service_info(settings)

        assert info.name == "Registry Test"
        assert info.environment == "development"


@pytest.mark.unit
class TestHandlers:
    """Test the exception handlers called directly."""

    async def test_conflict_response(self, mock_request: MockType) -> None:
        """Test the 409 body with conflicting ids and request ids."""
        RequestContext.set_correlation_id("corr-42")
        error = ConflictError(
            "overlap",
            {"tax_name": "AmusementTax"},
            (date(2024, 6, 1), None),
            conflicting_ids=[1],
        )

        response = await revenue_error_handler(mock_request, error)

        body = orjson.loads(response.body)
        assert response.status_code == status.HTTP_409_CONFLICT
        assert body["error_code"] == "CONFLICT"
        assert body["details"]["conflicting_ids"] == [1]
        assert body["correlation_id"] == "corr-42"
        assert body["request_id"].startswith("req-")
        assert body["debug_info"]["exception_type"] == "ConflictError"

    async def test_store_unavailable_logs_error(
        self, mock_request: MockType, mocker: MockerFixture
    ) -> None:
        """Test that alerting errors are logged at error level."""
        mock_logger = mocker.patch("revenue.api.middleware.error_handler.logger")

        response = await revenue_error_handler(
            mock_request, StoreUnavailableError("down", cause=TimeoutError())
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        mock_logger.error.assert_called_once()
        mock_logger.warning.assert_not_called()
        body = orjson.loads(response.body)
        assert body["debug_info"]["cause"]["type"] == "TimeoutError"

    async def test_no_debug_info_outside_development(
        self, mock_request: MockType
    ) -> None:
        """Test that stack traces stay internal in production."""
        mock_request.app.state.settings = Settings(environment="production")

        response = await revenue_error_handler(mock_request, NotFoundError("gone"))

        assert orjson.loads(response.body)["debug_info"] is None

    async def test_wrong_type_is_rejected(self, mock_request: MockType) -> None:
        """Test the handler type guards."""
        with pytest.raises(TypeError):
            await revenue_error_handler(mock_request, ValueError("x"))
        with pytest.raises(TypeError):
            await validation_error_handler(mock_request, ValueError("x"))
        with pytest.raises(TypeError):
            await http_exception_handler(mock_request, ValueError("x"))

    async def test_request_validation_groups_by_field(
        self, mock_request: MockType
    ) -> None:
        """Test that pydantic errors become a 400 keyed by field."""
        error = RequestValidationError(
            [
                {"loc": ("body", "tax_percent"), "msg": "Field required"},
                {"loc": ("body", "tax_percent"), "msg": "Input should be a number"},
                {"loc": ("body",), "msg": "Invalid JSON"},
            ]
        )

        response = await validation_error_handler(mock_request, error)

        body = orjson.loads(response.body)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert body["details"]["validation_errors"] == {
            "tax_percent": ["Field required", "Input should be a number"],
            "root": ["Invalid JSON"],
        }

    async def test_http_exception(self, mock_request: MockType) -> None:
        """Test that a 404 from routing keeps its status."""
        response = await http_exception_handler(
            mock_request, HTTPException(status_code=404, detail="Not Found")
        )

        body = orjson.loads(response.body)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert body["error_code"] == "NOT_FOUND"
        assert body["severity"] == "LOW"

    async def test_generic_exception_hides_details_in_production(
        self, mock_request: MockType
    ) -> None:
        """Test the production message."""
        mock_request.app.state.settings = Settings(environment="production")

        response = await generic_exception_handler(mock_request, RuntimeError("db"))

        body = orjson.loads(response.body)
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert body["message"] == "An internal server error occurred"
        assert body["details"] is None

    async def test_generic_exception_details_in_development(
        self, mock_request: MockType
    ) -> None:
        """Test that development responses name the exception."""
        response = await generic_exception_handler(mock_request, RuntimeError("db"))

        body = orjson.loads(response.body)
        assert body["details"] == {"error": "db", "type": "RuntimeError"}

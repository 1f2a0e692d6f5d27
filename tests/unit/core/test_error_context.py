"""Unit tests for revenue/core/error_context.py."""

import pytest
from pytest_mock import MockType

from revenue.core.constants import REDACTED
from revenue.core.error_context import (
    is_sensitive_field,
    sanitize_dict,
    sanitize_error_context,
    sanitize_sql_params,
)
from revenue.core.exceptions import NotFoundError


@pytest.mark.unit
class TestSanitization:
    """Test redaction of sensitive values."""

    @pytest.mark.parametrize(
        "field_name", ["password", "API_KEY", "auth_token", "session_id"]
    )
    def test_default_patterns(self, field_name: str) -> None:
        """Test names matched by the built-in pattern."""
        assert is_sensitive_field(field_name)

    @pytest.mark.parametrize("field_name", ["tax_name", "effective_date", "amount"])
    def test_registry_fields_are_not_sensitive(self, field_name: str) -> None:
        """Test that ordinary registry columns pass through."""
        assert not is_sensitive_field(field_name)

    def test_configured_fields(self, mock_get_settings: MockType) -> None:
        """Test names added through log_config.sensitive_fields."""
        assert is_sensitive_field("custom_secret_value")
        mock_get_settings.assert_called_once()

    def test_nested_values_are_redacted_on_copies(self) -> None:
        """Test recursion and that the input is left untouched."""
        data = {
            "natural_key": {"tax_name": "AmusementTax"},
            "headers": [{"authorization": "Bearer abc"}],
            "password": "hunter2",
        }

        result = sanitize_dict(data)

        assert result == {
            "natural_key": {"tax_name": "AmusementTax"},
            "headers": [{"authorization": REDACTED}],
            "password": REDACTED,
        }
        assert data["password"] == "hunter2"

    def test_error_context_includes_public_attributes(self) -> None:
        """Test that exception attributes are sanitized and merged."""
        error = NotFoundError("missing", record_id=4)

        context = sanitize_error_context(error, {"request_path": "/x"})

        assert context["error_type"] == "NotFoundError"
        assert context["request_path"] == "/x"
        assert context["error_attributes"]["record_id"] == 4
        assert "stack_trace" not in context["error_attributes"]

    @pytest.mark.parametrize(
        ("params", "expected"),
        [
            (None, None),
            ({"password": "x", "id_1": 3}, {"password": REDACTED, "id_1": 3}),
            ((1, 2), (1, 2)),
            ("raw", REDACTED),
        ],
    )
    def test_sql_params(self, params: object, expected: object) -> None:
        """Test each parameter shape."""
        assert sanitize_sql_params(params) == expected

"""Error response schema shared by every exception handler.

Every error the API returns has the same shape: a machine-readable code, a
message, optional details (the offending field, the conflicting versions),
the correlation and request ids of the call, and the service that answered.
``debug_info`` is only filled in development.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ServiceInfo(BaseModel):
    """Identifies the service that produced an error."""

    name: str = Field(
        ...,
        description="Name of the service",
        examples=["Revenue Registry"],
    )

    version: str = Field(
        ...,
        description="Version of the service",
        examples=["0.1.0"],
    )

    environment: str = Field(
        ...,
        description="Environment where the service is running",
        examples=["development", "staging", "production"],
    )


class ErrorResponse(BaseModel):
    """Standardized error body for all API errors."""

    error_code: str = Field(
        ...,
        description="Unique error code identifying the error type",
        examples=["VALIDATION_ERROR", "NOT_FOUND", "CONFLICT", "STORE_UNAVAILABLE"],
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=[
            "Missing required field: tax_percent",
            "Real property tax rate with id 7 not found",
        ],
    )

    details: dict[str, Any] | None = Field(
        default=None,
        description="Structured details such as the offending field",
        examples=[{"field": "expiration_date"}],
    )

    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID for tracing and debugging",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when the error occurred (with timezone)",
        examples=["2024-06-14T12:00:00+00:00"],
    )

    severity: str | None = Field(
        default=None,
        description="Error severity level (LOW, MEDIUM, HIGH, CRITICAL)",
        examples=["LOW", "HIGH"],
    )

    service_info: ServiceInfo | None = Field(
        default=None,
        description="Information about the service that generated the error",
    )

    request_id: str | None = Field(
        default=None,
        description=(
            "Unique request identifier (different from correlation_id "
            "which can span multiple services)"
        ),
        examples=["req-550e8400-e29b-41d4-a716-446655440000"],
    )

    debug_info: dict[str, Any] | None = Field(
        default=None,
        description="Debug information (only populated in development environments)",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error_code": "CONFLICT",
                    "message": (
                        "Validity interval overlaps existing version(s) [3] "
                        "for tax_name=AmusementTax"
                    ),
                    "details": {
                        "natural_key": {"tax_name": "AmusementTax"},
                        "effective_date": "2024-06-01",
                        "expiration_date": None,
                        "conflicting_ids": [3],
                    },
                    "correlation_id": "550e8400-e29b-41d4-a716-446655440000",
                    "request_id": "req-660e8400-e29b-41d4-a716-446655440000",
                    "timestamp": "2024-06-14T12:00:00+00:00",
                    "severity": "LOW",
                },
                {
                    "error_code": "VALIDATION_ERROR",
                    "message": "expiration_date must be on or after effective_date",
                    "details": {"field": "expiration_date"},
                    "timestamp": "2024-06-14T12:00:01+00:00",
                    "severity": "LOW",
                },
                {
                    "error_code": "STORE_UNAVAILABLE",
                    "message": "Configuration store timed out during scan",
                    "details": {"kind": "land", "operation": "scan"},
                    "timestamp": "2024-06-14T12:00:02+00:00",
                    "severity": "HIGH",
                },
            ]
        }
    }

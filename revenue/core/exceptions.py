"""Structured exception hierarchy for consistent error handling.

This module defines the exception system shared by the registry engine, the
configuration stores and the HTTP boundary. Every error carries a
machine-readable code, a severity and structured context, so the API layer
can translate it into a response without inspecting messages.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for monitoring and alerting
- **RevenueError**: Base exception with rich context and fingerprinting
- **Specialized exceptions**: Validation, not-found, overlap conflicts and
  store outages raised by the registry

Errors are raised, never returned as silent defaults. Callers may retry an
operation that failed with StoreUnavailableError; every operation except
Create is safe to repeat after a definite failure.
"""

import hashlib
import traceback
from datetime import date
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for the revenue registry."""

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    """The configuration store did not answer in time or is unreachable."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed due to missing or malformed data."""

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    """The requested configuration record could not be found."""

    CONFLICT = "CONFLICT"
    """A validity interval overlaps another version of the same natural key."""


class Severity(Enum):
    """Severity levels used to route errors to logs and alerts."""

    LOW = "LOW"
    """Expected errors caused by caller input."""

    MEDIUM = "MEDIUM"
    """Errors that affect a single operation but not the service."""

    HIGH = "HIGH"
    """Errors impacting critical functionality or data integrity."""

    CRITICAL = "CRITICAL"
    """Errors requiring immediate attention."""


class RevenueError(Exception):
    """Base exception class for all registry exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        # Exclude this frame
        self.stack_trace = traceback.format_stack()[:-1]
        self.fingerprint = self._generate_fingerprint()

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    def _generate_fingerprint(self) -> str:
        """Generate a fingerprint for error grouping.

        The hash combines the error type with the innermost project frames,
        so the same failure raised from the same place groups together.

        Returns:
            str: A hash string for error grouping
        """
        max_frames = 5
        relevant_frames = self.stack_trace[-max_frames:]

        fingerprint_data = f"{self.__class__.__name__}:{self.error_code}"
        for frame in relevant_frames:
            if "site-packages" not in frame and "revenue/" in frame:
                lines = frame.strip().split("\n")
                if lines:
                    fingerprint_data += f":{lines[0]}"

        return hashlib.sha256(fingerprint_data.encode()).hexdigest()[:16]

    @property
    def should_alert(self) -> bool:
        """Whether the error should trigger alerts (HIGH or CRITICAL)."""
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(RevenueError):
    """Raised when a payload is missing a required field or holds a bad value.

    Args:
        message: Description of the validation failure
        field: Name of the offending field, when a single field is at fault
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        context = dict(context or {})
        if field is not None:
            context["field"] = field
        super().__init__(
            ErrorCode.VALIDATION_ERROR, message, Severity.LOW, context, cause
        )
        self.field = field


class NotFoundError(RevenueError):
    """Raised when an operation targets a record that does not exist.

    Args:
        message: Description of what was not found
        record_id: Surrogate id that was looked up, if any
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        record_id: int | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        context = dict(context or {})
        if record_id is not None:
            context["id"] = record_id
        super().__init__(ErrorCode.NOT_FOUND, message, Severity.LOW, context, cause)
        self.record_id = record_id


class ConflictError(RevenueError):
    """Raised when a validity interval overlaps another version of its key.

    Args:
        message: Description of the conflict
        natural_key: The natural key both versions share
        interval: The rejected (effective_date, expiration_date) pair
        conflicting_ids: Ids of the stored records that overlap
    """

    def __init__(
        self,
        message: str,
        natural_key: dict[str, Any],
        interval: tuple[date, date | None],
        conflicting_ids: list[int] | None = None,
    ) -> None:
        effective, expiration = interval
        context = {
            "natural_key": {k: str(v) for k, v in natural_key.items()},
            "effective_date": effective.isoformat(),
            "expiration_date": expiration.isoformat() if expiration else None,
            "conflicting_ids": conflicting_ids or [],
        }
        super().__init__(ErrorCode.CONFLICT, message, Severity.LOW, context)
        self.natural_key = natural_key
        self.interval = interval
        self.conflicting_ids = conflicting_ids or []


class StoreUnavailableError(RevenueError):
    """Raised when the configuration store times out or cannot be reached.

    Args:
        message: Description of the failed store call
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.STORE_UNAVAILABLE, message, Severity.HIGH, context, cause
        )


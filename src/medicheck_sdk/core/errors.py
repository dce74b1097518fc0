"""Centralized error factory for the MediCheck SDK.

Provides consistent error creation and transformation across all SDK components.
"""

from __future__ import annotations

import uuid
from typing import Any

import httpx

from ..errors import (
    ClientRequestError,
    ForbiddenError,
    InvalidCredentialsError,
    MalformedResponseError,
    MediCheckError,
    NetworkUnreachableError,
    NotFoundError,
    RateLimitError,
    ServerUnavailableError,
    SessionExpiredError,
)
from ..types import Outcome, OutcomeKind


class ErrorFactory:
    """Centralized error creation with consistent structure.

    All errors created through this factory include:
    - Standardized error codes
    - Correlation IDs for tracing
    - Consistent detail structure for logging
    """

    @staticmethod
    def generate_correlation_id() -> str:
        """Generate a unique correlation ID."""
        return str(uuid.uuid4())

    @staticmethod
    def from_outcome(
        outcome: Outcome,
        *,
        correlation_id: str | None = None,
    ) -> MediCheckError:
        """Create the typed error a failed Outcome stands for.

        Args:
            outcome: Classified outcome; must not be SUCCESS or NOT_FOUND_SOFT.
            correlation_id: Optional correlation ID for tracing.

        Returns:
            Appropriate MediCheckError subclass.

        Raises:
            ValueError: If the outcome is not a failure.
        """
        if outcome.ok:
            msg = f"Outcome {outcome.kind} is not a failure"
            raise ValueError(msg)

        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()
        kind = outcome.kind

        if kind is OutcomeKind.AUTH_EXPIRED:
            if outcome.retryable:
                return SessionExpiredError(correlation_id=correlation_id)
            return InvalidCredentialsError(correlation_id=correlation_id)

        if kind is OutcomeKind.RATE_LIMITED:
            return RateLimitError(
                retry_after=outcome.retry_after,
                correlation_id=correlation_id,
            )

        if kind is OutcomeKind.FORBIDDEN:
            return ForbiddenError(correlation_id=correlation_id)

        if kind is OutcomeKind.NOT_FOUND:
            return NotFoundError(
                outcome.message or "Resource not found",
                correlation_id=correlation_id,
            )

        if kind is OutcomeKind.SERVER_ERROR:
            return ServerUnavailableError(
                outcome.message or "Server error. Please try again later.",
                status_code=outcome.status_code or 500,
                correlation_id=correlation_id,
                details=outcome.details,
            )

        if kind is OutcomeKind.MALFORMED_RESPONSE:
            return MalformedResponseError(
                outcome.message or "Server returned non-JSON response",
                status_code=outcome.status_code,
                correlation_id=correlation_id,
            )

        if kind is OutcomeKind.NETWORK_UNREACHABLE:
            return NetworkUnreachableError(
                outcome.message or "Cannot connect to server",
                correlation_id=correlation_id,
            )

        return ClientRequestError(
            outcome.message or f"HTTP error! status: {outcome.status_code}",
            status_code=outcome.status_code or 400,
            correlation_id=correlation_id,
            details=outcome.details,
        )

    @staticmethod
    def unwrap(outcome: Outcome) -> Any:
        """Return an Outcome's payload or raise the error it stands for."""
        if outcome.kind is OutcomeKind.SUCCESS:
            return outcome.payload
        if outcome.kind is OutcomeKind.NOT_FOUND_SOFT:
            return None
        raise ErrorFactory.from_outcome(outcome)

    @staticmethod
    def from_exception(
        exc: Exception,
        *,
        correlation_id: str | None = None,
    ) -> MediCheckError:
        """Create SDK error from exception.

        Args:
            exc: Original exception.
            correlation_id: Optional correlation ID for tracing.

        Returns:
            Appropriate MediCheckError subclass.
        """
        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()

        if isinstance(exc, MediCheckError):
            # Already an SDK error, just ensure correlation ID
            if exc.correlation_id is None:
                exc.correlation_id = correlation_id
            return exc

        if isinstance(exc, httpx.TimeoutException):
            return NetworkUnreachableError(
                f"Request timed out: {exc}",
                correlation_id=correlation_id,
                cause=exc,
            )

        if isinstance(exc, httpx.TransportError):
            return NetworkUnreachableError(
                f"Cannot connect to server: {exc}",
                correlation_id=correlation_id,
                cause=exc,
            )

        return NetworkUnreachableError(
            f"Unexpected error: {exc}",
            correlation_id=correlation_id,
            cause=exc,
        )


"""Error classes for the MediCheck SDK.

Structured error hierarchy with error codes and correlation IDs. Callers
only ever see these typed errors, never raw HTTP status codes.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the MediCheck SDK."""

    # Session errors (1xxx)
    SESSION_EXPIRED = "AUTH_1001"
    INVALID_CREDENTIALS = "AUTH_1002"
    FORBIDDEN = "AUTH_1003"

    # Client errors (2xxx)
    VALIDATION_ERROR = "VAL_2001"
    INVALID_CONFIG = "VAL_2002"
    NOT_FOUND = "VAL_2003"
    CLIENT_ERROR = "VAL_2004"

    # Network errors (3xxx)
    NETWORK_UNREACHABLE = "NET_3001"

    # Rate limiting (4xxx)
    RATE_LIMITED = "RATE_4001"

    # Server errors (5xxx)
    SERVER_UNAVAILABLE = "SRV_5001"
    MALFORMED_RESPONSE = "SRV_5002"


class MediCheckError(Exception):
    """Base error for the MediCheck SDK with structured error information."""

    user_message = "Something went wrong. Please try again."

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if isinstance(code, str) else code.value
        self.status_code = status_code
        self.correlation_id = correlation_id
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "correlation_id": self.correlation_id,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class SessionExpiredError(MediCheckError):
    """The session cannot be recovered; the user must log in again."""

    user_message = "Your session has expired. Please log in again."

    def __init__(
        self,
        message: str = "Session expired. Please login again.",
        *,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.SESSION_EXPIRED,
            status_code=401,
            correlation_id=correlation_id,
        )


class InvalidCredentialsError(MediCheckError):
    """An authentication endpoint rejected the supplied credentials."""

    user_message = "Invalid credentials. Please check your username and password."

    def __init__(
        self,
        message: str = "Invalid credentials. Please check your username and password.",
        *,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_CREDENTIALS,
            status_code=401,
            correlation_id=correlation_id,
        )


class ForbiddenError(MediCheckError):
    """Authenticated but not allowed to access the resource."""

    user_message = "Access denied. You don't have permission to access this resource."

    def __init__(
        self,
        message: str = "Access forbidden. You don't have permission to access this resource.",
        *,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
            correlation_id=correlation_id,
        )


class ValidationError(MediCheckError):
    """Client-side input validation failed."""

    user_message = "Some fields are invalid. Please correct them and try again."

    def __init__(
        self,
        message: str,
        *,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            correlation_id=correlation_id,
            details=details,
        )


class NotFoundError(MediCheckError):
    """A resource the caller required does not exist."""

    user_message = "The requested resource was not found."

    def __init__(
        self,
        message: str = "Resource not found",
        *,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.NOT_FOUND,
            status_code=404,
            correlation_id=correlation_id,
        )


class ClientRequestError(MediCheckError):
    """The server rejected the request (4xx not covered elsewhere)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 400,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.CLIENT_ERROR,
            status_code=status_code,
            correlation_id=correlation_id,
            details=details,
        )

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return self.message

    @property
    def duplicate(self) -> bool:
        """Whether the server reported the identifier as already taken."""
        body = self.details.get("body")
        if isinstance(body, dict) and body.get("duplicate"):
            return True
        lowered = self.message.lower()
        return "already exists" in lowered or "duplicate" in lowered


class NetworkUnreachableError(MediCheckError):
    """The server could not be reached (DNS, connection or timeout)."""

    user_message = "Cannot connect to the server. Please check your connection."

    def __init__(
        self,
        message: str = "Cannot connect to server",
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.NETWORK_UNREACHABLE,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class RateLimitError(MediCheckError):
    """Rate limit exceeded; the caller should back off."""

    user_message = "Too many requests. Please wait a moment and try again."

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please wait a moment and try again.",
        *,
        retry_after: int | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.RATE_LIMITED,
            status_code=429,
            correlation_id=correlation_id,
            details={"retry_after": retry_after} if retry_after else None,
        )
        self.retry_after = retry_after


class ServerUnavailableError(MediCheckError):
    """Server-side error."""

    user_message = "Server error. Please try again later."

    def __init__(
        self,
        message: str = "Server error. Please try again later.",
        *,
        status_code: int = 500,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.SERVER_UNAVAILABLE,
            status_code=status_code,
            correlation_id=correlation_id,
            details=details,
        )


class MalformedResponseError(MediCheckError):
    """The server answered with a body the client cannot interpret."""

    user_message = "The server returned an unexpected response."

    def __init__(
        self,
        message: str = "Server returned non-JSON response",
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.MALFORMED_RESPONSE,
            status_code=status_code,
            correlation_id=correlation_id,
        )


class InvalidConfigError(MediCheckError):
    """Invalid SDK configuration."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_CONFIG,
            details={"field": field} if field else None,
        )

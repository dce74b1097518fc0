"""Type definitions for the MediCheck request pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

ACKNOWLEDGEMENT: dict[str, Any] = {
    "success": True,
    "message": "Operation completed successfully",
}


class OutcomeKind(StrEnum):
    """Closed set of semantic results a response is classified into."""

    SUCCESS = "success"
    NOT_FOUND_SOFT = "not_found_soft"
    AUTH_EXPIRED = "auth_expired"
    RATE_LIMITED = "rate_limited"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    MALFORMED_RESPONSE = "malformed_response"
    NETWORK_UNREACHABLE = "network_unreachable"


@dataclass(frozen=True)
class RequestMeta:
    """What the classifier needs to know about the request it is judging."""

    method: str
    path: str
    existence_probe: bool = False
    auth_request: bool = False


@dataclass(frozen=True)
class RequestSpec:
    """One logical call, replayable verbatim after a token refresh."""

    method: str
    path: str
    body: Any = None
    headers: dict[str, str] | None = None
    existence_probe: bool = False


@dataclass(frozen=True)
class Outcome:
    """Result of classifying one transport exchange."""

    kind: OutcomeKind
    payload: Any = None
    status_code: int | None = None
    message: str | None = None
    retryable: bool = False
    retry_after: int | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True for outcomes a caller can consume without error handling."""
        return self.kind in (OutcomeKind.SUCCESS, OutcomeKind.NOT_FOUND_SOFT)

    @property
    def needs_refresh(self) -> bool:
        """True when a token refresh may turn this into a success."""
        return self.kind is OutcomeKind.AUTH_EXPIRED and self.retryable

    @classmethod
    def success(cls, payload: Any, *, status_code: int | None = None) -> Outcome:
        return cls(OutcomeKind.SUCCESS, payload=payload, status_code=status_code)

    @classmethod
    def absent(cls, *, status_code: int | None = 404) -> Outcome:
        return cls(OutcomeKind.NOT_FOUND_SOFT, payload=None, status_code=status_code)

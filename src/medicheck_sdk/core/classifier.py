"""Response classification for the MediCheck request pipeline.

Maps a raw ``httpx.Response`` to exactly one ``Outcome``. Pure: no I/O,
no logging, no token state.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from ..types import ACKNOWLEDGEMENT, Outcome, OutcomeKind, RequestMeta

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials. Please check your username and password."
SESSION_EXPIRED_MESSAGE = "Session expired. Please login again."


def is_json_content_type(content_type: str | None) -> bool:
    """Check whether a Content-Type header denotes a JSON body."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def parse_retry_after(value: str | None) -> int | None:
    """Parse a delta-seconds Retry-After header; HTTP dates are ignored."""
    if value and value.strip().isdigit():
        return int(value.strip())
    return None


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def _server_message(response: httpx.Response) -> tuple[str | None, Any]:
    """Extract the server-supplied message and the parsed body, if any."""
    body = _safe_json(response)
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value, body
    text = response.text.strip()
    if body is None and text:
        return text, None
    return None, body


def classify(response: httpx.Response, meta: RequestMeta) -> Outcome:
    """Classify a transport response.

    Args:
        response: Raw HTTP response.
        meta: Facts about the request that produced it.

    Returns:
        The single Outcome the response maps to.
    """
    status = response.status_code

    if status == 429:
        return Outcome(
            OutcomeKind.RATE_LIMITED,
            status_code=status,
            message="Rate limit exceeded. Please wait a moment and try again.",
            retry_after=parse_retry_after(response.headers.get("Retry-After")),
        )

    if status == 401:
        if meta.auth_request:
            return Outcome(
                OutcomeKind.AUTH_EXPIRED,
                status_code=status,
                message=INVALID_CREDENTIALS_MESSAGE,
                retryable=False,
            )
        return Outcome(
            OutcomeKind.AUTH_EXPIRED,
            status_code=status,
            message=SESSION_EXPIRED_MESSAGE,
            retryable=True,
        )

    if status == 404:
        if meta.existence_probe:
            return Outcome.absent(status_code=status)
        message, _ = _server_message(response)
        return Outcome(
            OutcomeKind.NOT_FOUND,
            status_code=status,
            message=message or f"Resource not found: {meta.path}",
        )

    if status == 403:
        return Outcome(
            OutcomeKind.FORBIDDEN,
            status_code=status,
            message="Access forbidden. You don't have permission to access this resource.",
        )

    if status >= 500:
        message, body = _server_message(response)
        return Outcome(
            OutcomeKind.SERVER_ERROR,
            status_code=status,
            message=message or "Server error. Please try again later.",
            details={"body": body} if body is not None else {},
        )

    if 200 <= status < 300:
        return _classify_success(response)

    message, body = _server_message(response)
    return Outcome(
        OutcomeKind.CLIENT_ERROR,
        status_code=status,
        message=message or f"HTTP error! status: {status}",
        details={"body": body} if body is not None else {},
    )


def _classify_success(response: httpx.Response) -> Outcome:
    status = response.status_code
    empty = not response.content.strip()

    if not is_json_content_type(response.headers.get("Content-Type")):
        if empty:
            return Outcome.success(dict(ACKNOWLEDGEMENT), status_code=status)
        return Outcome(
            OutcomeKind.MALFORMED_RESPONSE,
            status_code=status,
            message="Server returned non-JSON response",
        )

    if empty:
        return Outcome.success(dict(ACKNOWLEDGEMENT), status_code=status)

    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return Outcome(
            OutcomeKind.MALFORMED_RESPONSE,
            status_code=status,
            message="Server returned invalid JSON",
        )
    return Outcome.success(payload, status_code=status)


def classify_transport_failure(exc: Exception) -> Outcome:
    """Classify a failure that produced no response at all."""
    return Outcome(
        OutcomeKind.NETWORK_UNREACHABLE,
        message=f"Cannot connect to server: {exc}",
        details={"cause": type(exc).__name__},
    )

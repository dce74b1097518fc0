"""Request executor for the MediCheck SDK.

Builds and sends exactly one HTTP exchange. It normalizes the path, encodes
the body, attaches the current bearer credential and hands back the raw
response. It never interprets status codes.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel

from ..telemetry import get_logger, trace_operation
from .errors import ErrorFactory

if TYPE_CHECKING:
    from ..token_store import TokenStore

_PORT_SUFFIX = re.compile(r"(?::\d+)+\Z")


def normalize_path(path: str) -> str:
    """Strip spurious ``:<digits>`` suffixes and leading stray colons.

    Idempotent; a clean path comes back unchanged.
    """
    return _PORT_SUFFIX.sub("", path).lstrip(":")


def encode_body(body: Any) -> bytes | str | None:
    """Encode a request body as canonical JSON.

    Strings and bytes are assumed to be serialized already and pass through
    untouched.
    """
    if body is None or isinstance(body, (str, bytes)):
        return body
    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json", by_alias=True)
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False, default=str)


class RequestExecutor:
    """Sends single HTTP exchanges on behalf of the retry controller."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_store: TokenStore,
        *,
        trace_requests: bool = True,
    ) -> None:
        """Initialize request executor.

        Args:
            client: Async HTTP client bound to the API base address.
            token_store: Source of the bearer credential (read only).
            trace_requests: Whether to open a span per exchange.
        """
        self._client = client
        self._token_store = token_store
        self._trace_requests = trace_requests
        self._logger = get_logger()

    def build_headers(self, headers: dict[str, str] | None = None) -> dict[str, str]:
        """Default headers plus the bearer credential; caller headers win."""
        merged = {"Content-Type": "application/json"}
        token = self._token_store.access_token
        if token:
            merged["Authorization"] = f"Bearer {token}"
        if headers:
            merged.update(headers)
        return merged

    async def send(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: dict[str, str] | None = None,
        *,
        attempt: int = 0,
    ) -> httpx.Response:
        """Send one request and return the raw response.

        Args:
            method: HTTP method.
            path: Path relative to the base address.
            body: Optional body; non-strings are JSON encoded.
            headers: Extra headers, overriding the defaults.
            attempt: Attempt number, for tracing only.

        Returns:
            The raw HTTP response.

        Raises:
            NetworkUnreachableError: On DNS, connection or timeout failure.
        """
        method = method.upper()
        path = normalize_path(path)
        request_headers = self.build_headers(headers)
        content = encode_body(body)

        self._logger.debug(
            "Sending request",
            method=method,
            path=path,
            authenticated="Authorization" in request_headers,
            attempt=attempt,
        )

        if not self._trace_requests:
            return await self._dispatch(method, path, content, request_headers)

        with trace_operation(
            "http_request",
            attributes={"http.method": method, "http.url": path, "attempt": attempt},
        ) as span:
            response = await self._dispatch(method, path, content, request_headers)
            span.set_attribute("http.status_code", response.status_code)
            return response

    async def _dispatch(
        self,
        method: str,
        path: str,
        content: bytes | str | None,
        headers: dict[str, str],
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, content=content, headers=headers)
        except httpx.TransportError as e:
            raise ErrorFactory.from_exception(e) from e
        return response

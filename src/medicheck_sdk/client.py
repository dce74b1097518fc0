"""Async MediCheck API client.

Every call funnels through one pipeline: executor, classifier, and a single
refresh-and-retry cycle on an expired session.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Self

from pydantic import ValidationError as PydanticValidationError

from .config import MediCheckConfig
from .core.errors import ErrorFactory
from .core.http_executor import RequestExecutor
from .core.retry_controller import RetryController
from .core.token_coordinator import TokenCoordinator
from .errors import InvalidCredentialsError, MediCheckError
from .http import create_async_http_client
from .models import ConnectionReport, CredentialPair, SessionResponse
from .session import SessionExpiryNotifier
from .telemetry import get_logger, trace_operation
from .token_store import FileCredentialStorage, TokenStore, get_token_store
from .types import Outcome, OutcomeKind, RequestSpec

if TYPE_CHECKING:
    import httpx


class MediCheckClient:
    """Asynchronous MediCheck client with transparent session refresh."""

    def __init__(
        self,
        config: MediCheckConfig | None = None,
        *,
        token_store: TokenStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        on_session_expired: Callable[[], Any] | None = None,
    ) -> None:
        """Initialize async client.

        Args:
            config: SDK configuration (defaults to the hosted API).
            token_store: Credential store; the process-wide one by default,
                or a file-backed one when ``config.credentials_file`` is set.
            transport: Optional httpx transport override.
            on_session_expired: Application callback run, after
                ``config.session_redirect_delay`` seconds, when the session
                can no longer be refreshed.
        """
        self.config = config or MediCheckConfig()
        if token_store is None:
            if self.config.credentials_file is not None:
                token_store = TokenStore(FileCredentialStorage(self.config.credentials_file))
            else:
                token_store = get_token_store()
        self.token_store = token_store

        self.session_notifier = (
            SessionExpiryNotifier(on_session_expired, self.config.session_redirect_delay)
            if on_session_expired is not None
            else None
        )

        self._http = create_async_http_client(self.config, transport=transport)
        self._executor = RequestExecutor(
            self._http,
            token_store,
            trace_requests=self.config.telemetry.trace_requests,
        )
        self.coordinator = TokenCoordinator(
            self._executor,
            token_store,
            refresh_path=self.config.refresh_path,
            on_session_expired=self.session_notifier,
        )
        self._controller = RetryController(self._executor, self.coordinator, self.config)
        self._logger = get_logger()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self.token_store.is_authenticated

    @property
    def current_user(self) -> dict[str, Any] | None:
        return self.token_store.user

    async def execute(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        existence_probe: bool = False,
        headers: dict[str, str] | None = None,
    ) -> Outcome:
        """Run one call through the pipeline and return its Outcome.

        Args:
            method: HTTP method.
            path: Path relative to the base address.
            body: Optional request body.
            existence_probe: Treat a 404 as "absent" rather than an error.
                Only valid for GET.
            headers: Extra request headers.

        Returns:
            The terminal Outcome of the call.

        Raises:
            ValueError: If an existence probe is requested for a non-GET call.
            SessionExpiredError: If the session expired and could not be
                refreshed.
        """
        if existence_probe and method.upper() != "GET":
            msg = f"Existence probes must use GET, not {method.upper()}"
            raise ValueError(msg)
        request = RequestSpec(
            method=method.upper(),
            path=path,
            body=body,
            headers=headers,
            existence_probe=existence_probe,
        )
        return await self._controller.execute(request)

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        existence_probe: bool = False,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Like ``execute`` but returns the payload or raises a typed error.

        A soft not-found from an existence probe is returned as ``None``.
        """
        outcome = await self.execute(
            method,
            path,
            body,
            existence_probe=existence_probe,
            headers=headers,
        )
        return ErrorFactory.unwrap(outcome)

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", path, body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        return await self.request("PUT", path, body, **kwargs)

    async def patch(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        return await self.request("PATCH", path, body, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def login(self, username: str, password: str, **extra: Any) -> dict[str, Any]:
        """Authenticate and establish a session.

        Args:
            username: Account name.
            password: Account password.
            **extra: Additional login fields the server accepts.

        Returns:
            The user record the server returned (empty if it sent none).

        Raises:
            InvalidCredentialsError: If the server rejects the credentials.
        """
        with trace_operation("login"):
            outcome = await self.execute(
                "POST",
                self.config.login_path,
                {"username": username, "password": password, **extra},
            )
            if outcome.kind is not OutcomeKind.SUCCESS:
                raise ErrorFactory.from_outcome(outcome)

            try:
                body = SessionResponse.model_validate(outcome.payload)
            except PydanticValidationError as e:
                raise InvalidCredentialsError("Login failed: unexpected response") from e
            if not body.usable:
                raise InvalidCredentialsError(body.message or "Login failed")

            self.coordinator.establish(
                CredentialPair(
                    access_token=body.token,
                    refresh_token=body.refresh_token,
                    user=body.user,
                )
            )
            return body.user or {}

    def logout(self) -> None:
        """End the session and forget the stored credentials."""
        if self.session_notifier is not None:
            self.session_notifier.cancel()
        self.coordinator.end_session()

    async def test_connection(self) -> ConnectionReport:
        """Check that the API answers on its health endpoint. Never raises."""
        try:
            with trace_operation("test_connection"):
                data = await self.get(self.config.health_path)
        except MediCheckError as e:
            return ConnectionReport(success=False, message=e.message)
        return ConnectionReport(
            success=True,
            message="Connected to backend successfully",
            data=data,
        )

"""Token lifecycle coordination for the MediCheck SDK.

The coordinator is the sole writer of the token store. Refreshes are
single-flight: one pending refresh task at a time, shared by every caller
that needs a new access token while it runs.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Callable

from pydantic import ValidationError as PydanticValidationError

from ..errors import MediCheckError, SessionExpiredError
from ..models import CredentialPair, SessionResponse
from ..telemetry import get_logger, trace_operation
from ..types import OutcomeKind, RequestMeta
from .classifier import classify

if TYPE_CHECKING:
    from ..token_store import TokenStore
    from .http_executor import RequestExecutor


class TokenCoordinator:
    """Owns the credential pair and the pending-refresh slot."""

    def __init__(
        self,
        executor: RequestExecutor,
        token_store: TokenStore,
        *,
        refresh_path: str = "/auth/refresh-token",
        on_session_expired: Callable[[], None] | None = None,
    ) -> None:
        """Initialize token coordinator.

        Args:
            executor: Executor used for the refresh exchange.
            token_store: Credential store this coordinator owns.
            refresh_path: Refresh endpoint, relative to the base address.
            on_session_expired: Called once per unrecoverable refresh failure.
        """
        self._executor = executor
        self._store = token_store
        self._refresh_path = refresh_path
        self._on_session_expired = on_session_expired
        self._pending: asyncio.Task[str] | None = None
        self._logger = get_logger()
        self.refresh_count = 0

    @property
    def access_token(self) -> str | None:
        """The access token requests are currently sent with."""
        return self._store.access_token

    @property
    def refresh_pending(self) -> bool:
        """Whether a refresh exchange is currently in flight."""
        return self._pending is not None

    def establish(self, pair: CredentialPair) -> None:
        """Install a freshly issued pair (login)."""
        self._store.set(pair)
        self._logger.info("Session established", user_id=_user_id(pair))

    def end_session(self) -> None:
        """Forget the current pair (logout)."""
        self._store.clear()
        self._logger.info("Session ended")

    async def refresh(self, stale_token: str | None = None) -> str:
        """Obtain a new access token, sharing any refresh already in flight.

        Args:
            stale_token: The token a rejected request was sent with. If the
                store already holds a different one, it is returned without
                another exchange.

        Returns:
            The new access token.

        Raises:
            SessionExpiredError: If the session cannot be refreshed. The
                credential pair has been cleared by then.
        """
        if self._pending is None:
            current = self._store.access_token
            if stale_token is not None and current is not None and current != stale_token:
                self._logger.debug("Access token already replaced, skipping refresh")
                return current
            task = asyncio.create_task(self._exchange())
            task.add_done_callback(_consume_result)
            self._pending = task
        else:
            self._logger.debug("Joining pending token refresh")
        # Shielded so that an abandoned caller does not cancel the refresh
        # for everyone else waiting on it.
        return await asyncio.shield(self._pending)

    async def _exchange(self) -> str:
        self.refresh_count += 1
        try:
            with trace_operation("token_refresh"):
                pair = await self._request_new_pair()
                self._store.set(pair)
            self._logger.info("Token refreshed")
            return pair.access_token
        except Exception as e:
            reason = e.message if isinstance(e, MediCheckError) else repr(e)
            self._logger.warning("Token refresh failed, ending session", reason=reason)
            self._drop_session()
            raise SessionExpiredError() from e
        finally:
            self._pending = None

    async def _request_new_pair(self) -> CredentialPair:
        refresh_token = self._store.refresh_token
        if not refresh_token:
            raise SessionExpiredError("No refresh token available")

        response = await self._executor.send(
            "POST",
            self._refresh_path,
            headers={"Authorization": f"Bearer {refresh_token}"},
        )
        outcome = classify(
            response,
            RequestMeta(method="POST", path=self._refresh_path, auth_request=True),
        )
        if outcome.kind is not OutcomeKind.SUCCESS or not isinstance(outcome.payload, dict):
            raise SessionExpiredError(outcome.message or "Refresh rejected")

        try:
            body = SessionResponse.model_validate(outcome.payload)
        except PydanticValidationError as e:
            raise SessionExpiredError("Malformed refresh response") from e
        if not body.usable:
            raise SessionExpiredError(body.message or "Refresh response carried no token")

        return CredentialPair(
            access_token=body.token,
            refresh_token=body.refresh_token or refresh_token,
            user=body.user if body.user is not None else self._store.user,
        )

    def _drop_session(self) -> None:
        try:
            self._store.clear()
        except Exception:
            self._logger.exception("Could not persist cleared credentials")
        self._signal_session_expired()

    def _signal_session_expired(self) -> None:
        if self._on_session_expired is None:
            return
        try:
            self._on_session_expired()
        except Exception:
            self._logger.exception("Session-expired handler failed")


def _consume_result(task: asyncio.Task[str]) -> None:
    # Every waiter may have been cancelled; retrieve the exception so the
    # loop does not report it as never retrieved.
    if not task.cancelled():
        task.exception()


def _user_id(pair: CredentialPair) -> str | None:
    if not pair.user:
        return None
    value = pair.user.get("id") or pair.user.get("_id") or pair.user.get("username")
    return str(value) if value is not None else None

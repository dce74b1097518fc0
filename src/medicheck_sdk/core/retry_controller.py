"""Retry controller for the MediCheck SDK.

Composes executor, classifier and token coordinator into the public
``execute`` contract. An expired session earns exactly one
refresh-and-retry cycle per call; whatever the retry yields is final.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from ..errors import NetworkUnreachableError, SessionExpiredError
from ..telemetry import get_logger
from ..types import Outcome, OutcomeKind, RequestMeta, RequestSpec
from .classifier import classify, classify_transport_failure
from .http_executor import normalize_path

if TYPE_CHECKING:
    from ..config import MediCheckConfig
    from .http_executor import RequestExecutor
    from .token_coordinator import TokenCoordinator


class RequestState(StrEnum):
    """Lifecycle of one call through the controller."""

    IDLE = "idle"
    SENT = "sent"
    RESOLVED = "resolved"
    AWAITING_REFRESH = "awaiting_refresh"
    RETRY_SENT = "retry_sent"
    FAILED = "failed"


class RetryController:
    """Runs calls through at most one refresh and one retry."""

    def __init__(
        self,
        executor: RequestExecutor,
        coordinator: TokenCoordinator,
        config: MediCheckConfig,
    ) -> None:
        self._executor = executor
        self._coordinator = coordinator
        self._config = config
        self._logger = get_logger()

    def request_meta(self, request: RequestSpec) -> RequestMeta:
        path = normalize_path(request.path)
        return RequestMeta(
            method=request.method.upper(),
            path=path,
            existence_probe=request.existence_probe,
            auth_request=self._config.is_auth_path(path.split("?", 1)[0]),
        )

    async def execute(self, request: RequestSpec) -> Outcome:
        """Execute a call, refreshing the session once if it has expired.

        Args:
            request: The call to make.

        Returns:
            The terminal Outcome.

        Raises:
            SessionExpiredError: If the session expired and could not be
                refreshed.
        """
        meta = self.request_meta(request)
        log = self._logger.bind(method=meta.method, path=meta.path)

        sent_with = self._coordinator.access_token
        log.debug("Request state", state=RequestState.SENT)
        outcome = await self._attempt(request, meta, attempt=0)
        if not outcome.needs_refresh:
            log.debug("Request state", state=RequestState.RESOLVED, outcome=outcome.kind)
            return outcome

        log.debug("Request state", state=RequestState.AWAITING_REFRESH)
        try:
            await self._coordinator.refresh(stale_token=sent_with)
        except SessionExpiredError:
            log.debug("Request state", state=RequestState.FAILED)
            raise

        log.debug("Request state", state=RequestState.RETRY_SENT)
        outcome = await self._attempt(request, meta, attempt=1)
        log.debug("Request state", state=RequestState.RESOLVED, outcome=outcome.kind)
        return outcome

    async def _attempt(self, request: RequestSpec, meta: RequestMeta, *, attempt: int) -> Outcome:
        try:
            response = await self._executor.send(
                request.method,
                request.path,
                request.body,
                request.headers,
                attempt=attempt,
            )
        except NetworkUnreachableError as e:
            self._logger.warning("Server unreachable", path=meta.path, error=e.message)
            return classify_transport_failure(e.__cause__ or e)

        outcome = classify(response, meta)
        if meta.existence_probe and outcome.kind is OutcomeKind.NOT_FOUND_SOFT:
            self._logger.debug("Existence probe found nothing", path=meta.path)
        return outcome

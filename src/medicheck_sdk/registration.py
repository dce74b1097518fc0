"""Dual-storage write contract.

A registration must land in the primary record store and in the
append-only ledger. The server attempts both and reports which ones
succeeded; this module turns that report into one of three terminal
outcomes. A partial write is always surfaced as such, never promoted to
full success.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from .core.errors import ErrorFactory
from .errors import ClientRequestError, MediCheckError, SessionExpiredError
from .models import RegistrationResponse, WriteAttemptRecord
from .telemetry import get_logger, trace_operation
from .types import OutcomeKind

if TYPE_CHECKING:
    from .client import MediCheckClient


class SyncStatus(StrEnum):
    """Terminal states of a dual-storage write."""

    FULLY_SYNCED = "fully_synced"
    PARTIALLY_SYNCED = "partial"
    REJECTED = "rejected"


def classify_write(record: WriteAttemptRecord | None) -> SyncStatus:
    """Classify a write attempt by which backends it reached."""
    if record is None:
        return SyncStatus.REJECTED
    if record.primary_store_written and record.ledger_written:
        return SyncStatus.FULLY_SYNCED
    if record.primary_store_written or record.ledger_written:
        return SyncStatus.PARTIALLY_SYNCED
    return SyncStatus.REJECTED


class WriteOutcome(BaseModel):
    """What a caller may safely assume after a dual-storage write."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: SyncStatus
    identifier: str
    message: str
    primary_store_written: bool = False
    ledger_written: bool = False
    duplicate: bool = False
    data: dict[str, Any] | None = None
    error: MediCheckError | None = None

    @property
    def succeeded(self) -> bool:
        """A record exists in at least one backend."""
        return self.status is not SyncStatus.REJECTED

    @property
    def needs_attention(self) -> bool:
        """The record exists but the backends disagree."""
        return self.status is SyncStatus.PARTIALLY_SYNCED


def _describe(status: SyncStatus, identifier: str, record: WriteAttemptRecord | None) -> str:
    if status is SyncStatus.FULLY_SYNCED:
        return f'"{identifier}" registered in both the record store and the ledger'
    if status is SyncStatus.PARTIALLY_SYNCED:
        if record is not None and record.primary_store_written:
            return f'"{identifier}" saved but not yet ledger-verified'
        return f'"{identifier}" recorded on the ledger but missing from the record store'
    return f'Registration of "{identifier}" failed; nothing was stored'


class DualStorageWriter:
    """Registers records that must be durable in two backends."""

    def __init__(self, client: MediCheckClient, resource: str) -> None:
        """Initialize writer.

        Args:
            client: Client whose pipeline carries the calls.
            resource: Collection path, e.g. ``/batches``.
        """
        self._client = client
        self._resource = "/" + resource.strip("/")
        self._logger = get_logger().bind(resource=self._resource)
        self._locks: dict[str, asyncio.Lock] = {}
        self._claims: dict[str, int] = {}

    @property
    def pending_identifiers(self) -> frozenset[str]:
        """Identifiers with a registration in flight or queued."""
        return frozenset(self._locks)

    def identity_path(self, identifier: str) -> str:
        return f"{self._resource}/{quote(identifier, safe='')}"

    async def exists(self, identifier: str) -> bool:
        """Probe whether an identifier is already taken.

        Raises:
            MediCheckError: If the probe itself fails.
        """
        outcome = await self._client.execute(
            "GET",
            self.identity_path(identifier),
            existence_probe=True,
        )
        if outcome.kind is OutcomeKind.NOT_FOUND_SOFT:
            return False
        if outcome.kind is OutcomeKind.SUCCESS:
            # The original backend answers some misses with 200 {success: false}.
            payload = outcome.payload
            return not (isinstance(payload, dict) and payload.get("success") is False)
        raise ErrorFactory.from_outcome(outcome)

    @asynccontextmanager
    async def _claim(self, identifier: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(identifier, asyncio.Lock())
        self._claims[identifier] = self._claims.get(identifier, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._claims[identifier] -= 1
            if not self._claims[identifier]:
                del self._claims[identifier]
                del self._locks[identifier]

    async def register(self, identifier: str, payload: Any) -> WriteOutcome:
        """Check, then submit one dual-storage write and classify it.

        Calls for the same identifier run one at a time, so a second
        caller sees the first write and is refused without a POST.

        Args:
            identifier: The record's identity (e.g. batch number).
            payload: Request body for the registration POST.

        Returns:
            The classified write outcome.

        Raises:
            SessionExpiredError: If the session ended during the call.
        """
        async with self._claim(identifier):
            return await self._register(identifier, payload)

    async def _register(self, identifier: str, payload: Any) -> WriteOutcome:
        with trace_operation("dual_storage_write", attributes={"resource": self._resource}):
            try:
                taken = await self.exists(identifier)
            except SessionExpiredError:
                raise
            except MediCheckError as e:
                return self._rejected(identifier, e)

            if taken:
                self._logger.info("Refusing duplicate registration", identifier=identifier)
                return WriteOutcome(
                    status=SyncStatus.REJECTED,
                    identifier=identifier,
                    message=f'"{identifier}" already exists',
                    duplicate=True,
                )

            outcome = await self._client.execute("POST", self._resource, payload)
            if outcome.kind is not OutcomeKind.SUCCESS:
                return self._rejected(identifier, ErrorFactory.from_outcome(outcome))
            return self._interpret(identifier, outcome.payload)

    def _interpret(self, identifier: str, payload: Any) -> WriteOutcome:
        try:
            body = RegistrationResponse.model_validate(payload)
        except PydanticValidationError:
            body = RegistrationResponse()

        record = body.storage
        status = classify_write(record)
        outcome = WriteOutcome(
            status=status,
            identifier=identifier,
            message=body.message or _describe(status, identifier, record),
            primary_store_written=bool(record and record.primary_store_written),
            ledger_written=bool(record and record.ledger_written),
            duplicate=body.duplicate,
            data=body.data,
        )

        if status is SyncStatus.PARTIALLY_SYNCED:
            self._logger.warning(
                "Partial dual-storage write",
                identifier=identifier,
                primary_store_written=outcome.primary_store_written,
                ledger_written=outcome.ledger_written,
            )
        else:
            self._logger.info("Dual-storage write", identifier=identifier, status=status)
        return outcome

    def _rejected(self, identifier: str, error: MediCheckError) -> WriteOutcome:
        self._logger.warning("Registration rejected", identifier=identifier, error=error.message)
        return WriteOutcome(
            status=SyncStatus.REJECTED,
            identifier=identifier,
            message=error.message,
            duplicate=isinstance(error, ClientRequestError) and error.duplicate,
            error=error,
        )

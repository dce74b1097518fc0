"""Property-based tests for the dual-storage write contract.

Property 5: Classification Completeness
- Every combination of backend results maps to exactly one status
- Only a write to both backends is FULLY_SYNCED

Property 6: Duplicate Refusal
- A second registration of the same identifier never reaches the server
- Simultaneous registrations of one identifier produce a single POST
"""

from __future__ import annotations

import asyncio

from hypothesis import given, settings
from hypothesis import strategies as st

from medicheck_sdk.client import MediCheckClient
from medicheck_sdk.models import WriteAttemptRecord
from medicheck_sdk.registration import DualStorageWriter, SyncStatus, classify_write

from tests.fake_backend import FakeBackend, make_config

identifier_strategy = st.from_regex(r"\A[A-Z]{2,4}-[0-9]{1,6}\Z")


class TestClassificationCompleteness:
    """Property tests for classify_write."""

    @given(primary=st.booleans(), ledger=st.booleans())
    def test_total_over_backend_results(self, primary: bool, ledger: bool) -> None:
        """Property: classification is total and never promotes a partial write."""
        status = classify_write(
            WriteAttemptRecord(primary_store_written=primary, ledger_written=ledger)
        )
        if primary and ledger:
            assert status is SyncStatus.FULLY_SYNCED
        elif primary or ledger:
            assert status is SyncStatus.PARTIALLY_SYNCED
        else:
            assert status is SyncStatus.REJECTED


class TestRegistrationScenarios:
    """Property tests for DualStorageWriter against the fake backend."""

    @given(
        identifier=identifier_strategy,
        primary=st.booleans(),
        ledger=st.booleans(),
    )
    @settings(max_examples=40, deadline=None)
    def test_outcome_matches_backend_results(
        self,
        identifier: str,
        primary: bool,
        ledger: bool,
    ) -> None:
        """Property: the reported flags are exactly what the server wrote."""

        async def scenario() -> None:
            backend = FakeBackend()
            backend.primary_store_available = primary
            backend.ledger_available = ledger
            async with MediCheckClient(
                make_config(),
                token_store=backend.seeded_store(),
                transport=backend.transport,
            ) as client:
                outcome = await DualStorageWriter(client, "/batches").register(
                    identifier, {"batchNo": identifier}
                )

            assert outcome.identifier == identifier
            if primary or ledger:
                assert outcome.primary_store_written is primary
                assert outcome.ledger_written is ledger
            assert outcome.status is classify_write(
                WriteAttemptRecord(primary_store_written=primary, ledger_written=ledger)
            )

        asyncio.run(scenario())

    @given(identifier=identifier_strategy, attempts=st.integers(min_value=2, max_value=5))
    @settings(max_examples=25, deadline=None)
    def test_sequential_duplicates_refused_client_side(
        self,
        identifier: str,
        attempts: int,
    ) -> None:
        """Property: after one successful write, later ones stop at the probe."""

        async def scenario() -> None:
            backend = FakeBackend()
            async with MediCheckClient(
                make_config(),
                token_store=backend.seeded_store(),
                transport=backend.transport,
            ) as client:
                writer = DualStorageWriter(client, "/batches")
                outcomes = [
                    await writer.register(identifier, {"batchNo": identifier})
                    for _ in range(attempts)
                ]

            assert outcomes[0].status is SyncStatus.FULLY_SYNCED
            for later in outcomes[1:]:
                assert later.status is SyncStatus.REJECTED
                assert later.duplicate
            assert len(backend.requests_to("POST", "/batches")) == 1

        asyncio.run(scenario())

    @given(identifier=identifier_strategy, attempts=st.integers(min_value=2, max_value=6))
    @settings(max_examples=25, deadline=None)
    def test_concurrent_duplicates_refused_client_side(
        self,
        identifier: str,
        attempts: int,
    ) -> None:
        """Property: of N simultaneous registrations exactly one reaches the server."""

        async def scenario() -> None:
            backend = FakeBackend()
            async with MediCheckClient(
                make_config(),
                token_store=backend.seeded_store(),
                transport=backend.transport,
            ) as client:
                writer = DualStorageWriter(client, "/batches")
                outcomes = await asyncio.gather(
                    *(writer.register(identifier, {"batchNo": identifier}) for _ in range(attempts))
                )
                assert writer.pending_identifiers == frozenset()

            statuses = [o.status for o in outcomes]
            assert statuses.count(SyncStatus.FULLY_SYNCED) == 1
            assert statuses.count(SyncStatus.REJECTED) == attempts - 1
            assert all(o.duplicate for o in outcomes if o.status is SyncStatus.REJECTED)
            assert len(backend.requests_to("POST", "/batches")) == 1

        asyncio.run(scenario())

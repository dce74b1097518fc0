"""Unit tests for the delayed session-expiry signal."""

from __future__ import annotations

import asyncio

import pytest

from medicheck_sdk.client import MediCheckClient
from medicheck_sdk.errors import SessionExpiredError
from medicheck_sdk.session import SessionExpiryNotifier

from tests.fake_backend import FakeBackend, make_config


class TestSessionExpiryNotifier:
    """Tests for SessionExpiryNotifier."""

    @pytest.mark.asyncio
    async def test_fires_after_delay(self) -> None:
        calls: list[str] = []
        notifier = SessionExpiryNotifier(lambda: calls.append("redirect"), delay=0.01)

        notifier()
        assert notifier.pending
        assert calls == []

        await asyncio.sleep(0.05)
        assert calls == ["redirect"]
        assert not notifier.pending

    @pytest.mark.asyncio
    async def test_repeated_signals_coalesce(self) -> None:
        calls: list[str] = []
        notifier = SessionExpiryNotifier(lambda: calls.append("redirect"), delay=0.01)

        notifier()
        notifier()
        notifier()
        await asyncio.sleep(0.05)

        assert calls == ["redirect"]

    @pytest.mark.asyncio
    async def test_cancel_drops_pending_signal(self) -> None:
        calls: list[str] = []
        notifier = SessionExpiryNotifier(lambda: calls.append("redirect"), delay=0.01)

        notifier()
        notifier.cancel()
        await asyncio.sleep(0.05)

        assert calls == []

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self) -> None:
        done = asyncio.Event()

        async def redirect() -> None:
            done.set()

        SessionExpiryNotifier(redirect, delay=0)()
        await asyncio.wait_for(done.wait(), timeout=1)


class TestClientSignalsExpiry:
    """The client schedules the callback when a refresh fails."""

    @pytest.mark.asyncio
    async def test_unrecoverable_session_notifies_once(self, backend: FakeBackend) -> None:
        calls: list[str] = []
        backend.refresh_delay = 0.01
        store = backend.seeded_store()
        backend.expire_access_tokens()
        backend.revoke_refresh_tokens()

        async with MediCheckClient(
            make_config(),
            token_store=store,
            transport=backend.transport,
            on_session_expired=lambda: calls.append("redirect"),
        ) as client:
            results = await asyncio.gather(
                client.execute("GET", "/batches"),
                client.execute("GET", "/batches"),
                return_exceptions=True,
            )
            await asyncio.sleep(0.01)

        assert all(isinstance(r, SessionExpiredError) for r in results)
        assert calls == ["redirect"]

    @pytest.mark.asyncio
    async def test_logout_cancels_pending_redirect(self, backend: FakeBackend) -> None:
        calls: list[str] = []
        store = backend.seeded_store()
        backend.expire_access_tokens()

        async with MediCheckClient(
            make_config(session_redirect_delay=0.05),
            token_store=store,
            transport=backend.transport,
            on_session_expired=lambda: calls.append("redirect"),
        ) as client:
            backend.revoke_refresh_tokens()
            with pytest.raises(SessionExpiredError):
                await client.execute("GET", "/batches")
            assert client.session_notifier.pending
            client.logout()
            await asyncio.sleep(0.1)

        assert calls == []

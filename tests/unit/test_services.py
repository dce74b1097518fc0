"""Unit tests for the resource services."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
import pytest_asyncio

from medicheck_sdk.client import MediCheckClient
from medicheck_sdk.errors import NotFoundError, ValidationError
from medicheck_sdk.models import BatchRegistration
from medicheck_sdk.registration import SyncStatus
from medicheck_sdk.services import (
    AnalyticsService,
    BatchService,
    ManufacturerService,
    PharmacyService,
    ResourceService,
)

from tests.fake_backend import FakeBackend, make_config


class RecordingTransport:
    """Answers every call with an empty success and remembers it."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json={"success": True})

    @property
    def last(self) -> tuple[str, str]:
        request = self.requests[-1]
        target = request.url.raw_path.decode().removeprefix("/api")
        return request.method, target


@pytest.fixture
def recorder() -> RecordingTransport:
    return RecordingTransport()


@pytest_asyncio.fixture
async def recording_client(recorder: RecordingTransport) -> AsyncIterator[MediCheckClient]:
    async with MediCheckClient(make_config(), transport=httpx.MockTransport(recorder)) as c:
        yield c


class TestResourceService:
    """Tests for the generic CRUD service."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("call", "expected"),
        [
            (lambda s: s.list(), ("GET", "/widgets")),
            (lambda s: s.get(7), ("GET", "/widgets/7")),
            (lambda s: s.create({"a": 1}), ("POST", "/widgets")),
            (lambda s: s.update(7, {"a": 2}), ("PUT", "/widgets/7")),
            (lambda s: s.patch(7, {"a": 3}), ("PATCH", "/widgets/7")),
            (lambda s: s.delete(7), ("DELETE", "/widgets/7")),
        ],
    )
    async def test_crud_routes(
        self,
        recording_client: MediCheckClient,
        recorder: RecordingTransport,
        call: Any,
        expected: tuple[str, str],
    ) -> None:
        await call(ResourceService(recording_client, "widgets/"))
        assert recorder.last == expected


class TestBatchService:
    """Tests for BatchService."""

    @pytest.mark.asyncio
    async def test_query_routes(
        self,
        recording_client: MediCheckClient,
        recorder: RecordingTransport,
    ) -> None:
        service = BatchService(recording_client)

        await service.by_manufacturer("Acme Pharma")
        assert recorder.last == ("GET", "/batches?manufacturer=Acme+Pharma")

        await service.expired()
        assert recorder.last == ("GET", "/batches?status=expired")

        await service.accept("PCM-1")
        assert recorder.last == ("PUT", "/batches/accept/PCM-1")

    @pytest.mark.asyncio
    async def test_verify_missing_batch_raises(
        self,
        logged_in_client: MediCheckClient,
    ) -> None:
        with pytest.raises(NotFoundError):
            await BatchService(logged_in_client).verify("NOPE-1")

    @pytest.mark.asyncio
    async def test_register_from_fields(
        self,
        logged_in_client: MediCheckClient,
        backend: FakeBackend,
        batch_fields: dict[str, Any],
    ) -> None:
        outcome = await BatchService(logged_in_client).register(batch_fields)

        assert outcome.status is SyncStatus.FULLY_SYNCED
        posted = json.loads(backend.requests_to("POST", "/batches")[0].content)
        assert posted["batchNo"] == "PCM-2024-001"
        assert posted["medicineName"] == "Paracetamol"
        assert posted["pharmacy"] == "To be assigned"

    @pytest.mark.asyncio
    async def test_register_model(
        self,
        logged_in_client: MediCheckClient,
        batch_fields: dict[str, Any],
    ) -> None:
        batch = BatchRegistration.model_validate(batch_fields)
        service = BatchService(logged_in_client)

        assert not await service.exists(batch.batch_no)
        await service.register(batch)
        assert await service.exists(batch.batch_no)

    @pytest.mark.asyncio
    async def test_invalid_batch_never_sent(
        self,
        logged_in_client: MediCheckClient,
        backend: FakeBackend,
        batch_fields: dict[str, Any],
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await BatchService(logged_in_client).register({**batch_fields, "quantity": 0})

        fields = [e["field"] for e in exc_info.value.details["errors"]]
        assert fields == ["quantity"]
        assert backend.requests == []


class TestOtherServices:
    """Tests for pharmacy, manufacturer and analytics routes."""

    @pytest.mark.asyncio
    async def test_pharmacy_routes(
        self,
        recording_client: MediCheckClient,
        recorder: RecordingTransport,
    ) -> None:
        service = PharmacyService(recording_client)

        await service.medicines("ph-1")
        assert recorder.last == ("GET", "/pharmacy/medicines/ph-1")
        await service.add_medicine({"name": "x"})
        assert recorder.last == ("POST", "/pharmacy/medicines")
        await service.accept_batch({"batchNo": "PCM-1"})
        assert recorder.last == ("POST", "/pharmacy/accept-batch")
        await service.verify_medicine("PCM-1")
        assert recorder.last == ("GET", "/pharmacy/verify/PCM-1")

    @pytest.mark.asyncio
    async def test_manufacturer_routes(
        self,
        recording_client: MediCheckClient,
        recorder: RecordingTransport,
    ) -> None:
        service = ManufacturerService(recording_client)

        await service.companies()
        assert recorder.last == ("GET", "/manufacturer-companies")
        await service.create_company({"name": "Acme"})
        assert recorder.last == ("POST", "/manufacturer-companies")
        await service.batches("m-1")
        assert recorder.last == ("GET", "/manufacturers/batches?manufacturer=m-1")

    @pytest.mark.asyncio
    async def test_analytics_routes(
        self,
        recording_client: MediCheckClient,
        recorder: RecordingTransport,
    ) -> None:
        service = AnalyticsService(recording_client)

        for name in ("dashboard", "batches", "manufacturers", "pharmacies"):
            await getattr(service, name)()
            assert recorder.last == ("GET", f"/analytics/{name}")

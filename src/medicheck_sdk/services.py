"""Resource services over the MediCheck API.

Thin wrappers that name the endpoints; every call still goes through the
client's pipeline.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlencode

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import BatchRegistration
from .registration import DualStorageWriter, WriteOutcome

if TYPE_CHECKING:
    from .client import MediCheckClient


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


class ResourceService:
    """CRUD calls against one collection endpoint."""

    def __init__(self, client: MediCheckClient, endpoint: str) -> None:
        self.client = client
        self.endpoint = "/" + endpoint.strip("/")

    def item_path(self, identifier: Any) -> str:
        return f"{self.endpoint}/{_segment(identifier)}"

    def query_path(self, **params: Any) -> str:
        return f"{self.endpoint}?{urlencode(params)}"

    async def list(self) -> Any:
        return await self.client.get(self.endpoint)

    async def get(self, identifier: Any) -> Any:
        return await self.client.get(self.item_path(identifier))

    async def create(self, data: Any) -> Any:
        return await self.client.post(self.endpoint, data)

    async def update(self, identifier: Any, data: Any) -> Any:
        return await self.client.put(self.item_path(identifier), data)

    async def patch(self, identifier: Any, data: Any) -> Any:
        return await self.client.patch(self.item_path(identifier), data)

    async def delete(self, identifier: Any) -> Any:
        return await self.client.delete(self.item_path(identifier))


class BatchService(ResourceService):
    """Medicine batches, including dual-storage registration."""

    def __init__(self, client: MediCheckClient) -> None:
        super().__init__(client, "/batches")
        self.writer = DualStorageWriter(client, self.endpoint)

    async def verify(self, batch_no: str) -> Any:
        """Verify a batch by number.

        Raises:
            NotFoundError: If no such batch exists.
        """
        return await self.client.get(f"{self.endpoint}/verify/{_segment(batch_no)}")

    async def accept(self, batch_no: str) -> Any:
        return await self.client.put(f"{self.endpoint}/accept/{_segment(batch_no)}")

    async def by_manufacturer(self, manufacturer: str) -> Any:
        return await self.client.get(self.query_path(manufacturer=manufacturer))

    async def expired(self) -> Any:
        return await self.client.get(self.query_path(status="expired"))

    async def exists(self, batch_no: str) -> bool:
        return await self.writer.exists(batch_no)

    async def register(self, batch: BatchRegistration | dict[str, Any]) -> WriteOutcome:
        """Register a batch in the record store and on the ledger.

        Args:
            batch: The batch, or its fields in either naming style.

        Returns:
            The classified write outcome. A partial write is reported as
            ``PARTIALLY_SYNCED``, never as success.

        Raises:
            ValidationError: If the batch fails client-side checks.
            SessionExpiredError: If the session ended during the call.
        """
        if not isinstance(batch, BatchRegistration):
            try:
                batch = BatchRegistration.model_validate(batch)
            except PydanticValidationError as e:
                errors = [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ]
                raise ValidationError("Invalid batch", details={"errors": errors}) from e
        return await self.writer.register(batch.batch_no, batch.to_payload())


class PharmacyService(ResourceService):
    """Pharmacy inventory endpoints."""

    def __init__(self, client: MediCheckClient) -> None:
        super().__init__(client, "/pharmacy")

    async def medicines(self, pharmacy_id: Any) -> Any:
        return await self.client.get(f"{self.endpoint}/medicines/{_segment(pharmacy_id)}")

    async def add_medicine(self, medicine: dict[str, Any]) -> Any:
        return await self.client.post(f"{self.endpoint}/medicines", medicine)

    async def accept_batch(self, batch: dict[str, Any]) -> Any:
        return await self.client.post(f"{self.endpoint}/accept-batch", batch)

    async def verify_medicine(self, batch_no: str) -> Any:
        return await self.client.get(f"{self.endpoint}/verify/{_segment(batch_no)}")


class ManufacturerService(ResourceService):
    """Manufacturers and manufacturer companies."""

    def __init__(self, client: MediCheckClient) -> None:
        super().__init__(client, "/manufacturers")

    async def companies(self) -> Any:
        return await self.client.get("/manufacturer-companies")

    async def create_company(self, company: dict[str, Any]) -> Any:
        return await self.client.post("/manufacturer-companies", company)

    async def batches(self, manufacturer_id: Any) -> Any:
        return await self.client.get(
            f"{self.endpoint}/batches?{urlencode({'manufacturer': manufacturer_id})}"
        )


class AnalyticsService:
    """Read-only dashboard statistics."""

    def __init__(self, client: MediCheckClient) -> None:
        self.client = client

    async def dashboard(self) -> Any:
        return await self.client.get("/analytics/dashboard")

    async def batches(self) -> Any:
        return await self.client.get("/analytics/batches")

    async def manufacturers(self) -> Any:
        return await self.client.get("/analytics/manufacturers")

    async def pharmacies(self) -> Any:
        return await self.client.get("/analytics/pharmacies")

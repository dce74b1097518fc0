"""Pydantic models for the MediCheck SDK.

Frozen models for credentials and the server's wire shapes. Aliases
accept both the documented camelCase keys and the keys the deployed
backend actually emits.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Annotated, Any, Self

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

BATCH_NUMBER_PATTERN = re.compile(r"^[A-Za-z0-9\-_]+$")


class CredentialPair(BaseModel):
    """The current access/refresh credentials and the user they belong to."""

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., min_length=1)
    refresh_token: str | None = None
    user: dict[str, Any] | None = None

    def __repr__(self) -> str:
        # Token material stays out of logs and tracebacks.
        refresh = "'***'" if self.refresh_token else "None"
        return f"CredentialPair(access_token='***', refresh_token={refresh}, user={self.user!r})"


class SessionResponse(BaseModel):
    """Body of a login or refresh-token response."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    success: bool = True
    token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("token", "accessToken", "access_token"),
    )
    refresh_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("refreshToken", "refresh_token"),
    )
    user: dict[str, Any] | None = None
    message: str | None = None

    @property
    def usable(self) -> bool:
        """Whether the response carries a credential the client can use."""
        return self.success and bool(self.token)


class WriteAttemptRecord(BaseModel):
    """Which backends a dual-storage write reached, as reported by the server."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    primary_store_written: bool = Field(
        default=False,
        validation_alias=AliasChoices("primaryStoreWritten", "primary_store_written", "mongodb"),
    )
    ledger_written: bool = Field(
        default=False,
        validation_alias=AliasChoices("ledgerWritten", "ledger_written", "blockchain"),
    )
    status: str | None = None


class RegistrationResponse(BaseModel):
    """Body of a registration-style POST."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    success: bool = False
    storage: WriteAttemptRecord | None = None
    message: str | None = None
    data: dict[str, Any] | None = None
    duplicate: bool = False


class BatchRegistration(BaseModel):
    """A medicine batch ready to be registered.

    Serialises with ``by_alias=True`` to the field names the batch endpoint
    expects.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    batch_no: Annotated[str, Field(min_length=3, alias="batchNo")]
    name: Annotated[str, Field(min_length=2)]
    medicine_name: Annotated[str | None, Field(alias="medicineName")] = None
    manufacture_date: Annotated[date, Field(alias="manufactureDate")]
    expiry: date
    formulation: Annotated[str, Field(min_length=2)]
    manufacturer: Annotated[str, Field(min_length=1)]
    pharmacy: str = "To be assigned"
    quantity: Annotated[int, Field(gt=0)]
    pack_size: Annotated[str, Field(alias="packSize")] = "1X1"

    @field_validator("batch_no")
    @classmethod
    def validate_batch_no(cls, v: str) -> str:
        """Batch numbers are letters, digits, hyphens and underscores only."""
        if not BATCH_NUMBER_PATTERN.match(v):
            msg = "Batch number can only contain letters, numbers, hyphens, and underscores"
            raise ValueError(msg)
        return v

    @field_validator("manufacture_date")
    @classmethod
    def validate_manufacture_date(cls, v: date) -> date:
        """A batch cannot be manufactured in the future."""
        if v > date.today():
            msg = "Manufacture date cannot be in the future"
            raise ValueError(msg)
        return v

    @model_validator(mode="before")
    @classmethod
    def default_medicine_name(cls, data: Any) -> Any:
        """The display name defaults to the medicine name."""
        if not isinstance(data, dict) or "name" not in data:
            return data
        if data.get("medicineName") is None and data.get("medicine_name") is None:
            data = {**data, "medicineName": data["name"]}
        return data

    @model_validator(mode="after")
    def validate_dates(self) -> Self:
        """Expiry must follow manufacture and lie in the future."""
        if self.expiry <= self.manufacture_date:
            msg = "Expiry date must be after manufacture date"
            raise ValueError(msg)
        if self.expiry <= date.today():
            msg = "Expiry date must be in the future"
            raise ValueError(msg)
        return self

    def to_payload(self) -> dict[str, Any]:
        """Request body for the batch endpoint."""
        return self.model_dump(mode="json", by_alias=True)


class ConnectionReport(BaseModel):
    """Result of a connectivity check against the health endpoint."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    data: Any = None

"""MediCheck Python SDK."""

from .client import MediCheckClient
from .config import MediCheckConfig, TelemetryConfig
from .errors import (
    ClientRequestError,
    ErrorCode,
    ForbiddenError,
    InvalidConfigError,
    InvalidCredentialsError,
    MalformedResponseError,
    MediCheckError,
    NetworkUnreachableError,
    NotFoundError,
    RateLimitError,
    ServerUnavailableError,
    SessionExpiredError,
    ValidationError,
)
from .models import BatchRegistration, ConnectionReport, CredentialPair
from .registration import DualStorageWriter, SyncStatus, WriteOutcome, classify_write
from .services import (
    AnalyticsService,
    BatchService,
    ManufacturerService,
    PharmacyService,
    ResourceService,
)
from .session import SessionExpiryNotifier
from .telemetry import configure_telemetry
from .token_store import FileCredentialStorage, MemoryCredentialStorage, TokenStore
from .types import Outcome, OutcomeKind

__all__ = [
    "MediCheckClient",
    "MediCheckConfig",
    "TelemetryConfig",
    "ClientRequestError",
    "ErrorCode",
    "ForbiddenError",
    "InvalidConfigError",
    "InvalidCredentialsError",
    "MalformedResponseError",
    "MediCheckError",
    "NetworkUnreachableError",
    "NotFoundError",
    "RateLimitError",
    "ServerUnavailableError",
    "SessionExpiredError",
    "ValidationError",
    "BatchRegistration",
    "ConnectionReport",
    "CredentialPair",
    "DualStorageWriter",
    "SyncStatus",
    "WriteOutcome",
    "classify_write",
    "AnalyticsService",
    "BatchService",
    "ManufacturerService",
    "PharmacyService",
    "ResourceService",
    "SessionExpiryNotifier",
    "configure_telemetry",
    "FileCredentialStorage",
    "MemoryCredentialStorage",
    "TokenStore",
    "Outcome",
    "OutcomeKind",
]

__version__ = "0.1.0"

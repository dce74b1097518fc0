"""Configuration for the MediCheck SDK.

Uses Pydantic v2 for validation with sensible defaults. The base address
defaults to the hosted MediCheck API and can be overridden from the
environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Any, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

from .errors import InvalidConfigError

DEFAULT_BASE_URL = "https://medicheck-production.up.railway.app/api"


class TelemetryConfig(BaseModel):
    """Structured logging and tracing configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "medicheck-sdk"
    trace_requests: bool = True
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unsupported log level: {v}"
            raise ValueError(msg)
        return level


class MediCheckConfig(BaseModel):
    """Main configuration for the MediCheck SDK."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    base_url: HttpUrl = DEFAULT_BASE_URL  # type: ignore[assignment]

    # HTTP settings
    timeout: Annotated[float, Field(gt=0, le=300)] = 30.0
    connect_timeout: Annotated[float, Field(gt=0, le=60)] = 10.0
    user_agent: str = "medicheck-sdk/0.1.0 Python"

    # Endpoints, relative to base_url
    auth_path_prefix: str = "/auth/"
    login_path: str = "/auth/login"
    refresh_path: str = "/auth/refresh-token"
    health_path: str = "/health"

    # Session handling
    session_redirect_delay: Annotated[float, Field(ge=0, le=60)] = 2.0
    credentials_file: Path | None = None

    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @field_validator("auth_path_prefix", "login_path", "refresh_path", "health_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Endpoint paths are absolute with respect to base_url."""
        if not v.startswith("/"):
            msg = f"Endpoint path must start with '/': {v!r}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_auth_endpoints(self) -> Self:
        """Login and refresh must live under the auth prefix."""
        for name in ("login_path", "refresh_path"):
            if not self.is_auth_path(getattr(self, name)):
                msg = f"{name} must start with auth_path_prefix {self.auth_path_prefix!r}"
                raise ValueError(msg)
        return self

    @property
    def base_url_str(self) -> str:
        """Get base URL as string without trailing slash."""
        return str(self.base_url).rstrip("/")

    def is_auth_path(self, path: str) -> bool:
        """Check whether a normalized path targets an authentication endpoint."""
        prefix = self.auth_path_prefix.rstrip("/")
        return path == prefix or path.startswith(prefix + "/")

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "MEDICHECK_") -> Self:
        """Create config from environment variables."""

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        def get_float(key: str, default: str) -> float:
            raw = get_env(key, default)
            try:
                return float(raw)
            except ValueError as e:
                msg = f"{prefix}{key} must be a number, got {raw!r}"
                raise InvalidConfigError(msg, field=key.lower()) from e

        credentials_file = get_env("CREDENTIALS_FILE")
        telemetry = TelemetryConfig(
            enabled=get_env("TELEMETRY_ENABLED", "true").lower() not in {"0", "false", "no"},
            log_level=get_env("LOG_LEVEL", "INFO"),
        )

        return cls(
            base_url=get_env("API_URL") or DEFAULT_BASE_URL,
            timeout=get_float("TIMEOUT", "30.0"),
            connect_timeout=get_float("CONNECT_TIMEOUT", "10.0"),
            credentials_file=Path(credentials_file) if credentials_file else None,
            telemetry=telemetry,
        )

"""Structured logging and tracing for the MediCheck SDK.

Log lines are JSON rendered by structlog. Spans come from the
OpenTelemetry API and are no-ops unless the application installs an SDK.
Credential material is masked before any log line is rendered.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Iterator, MutableMapping

    from .config import TelemetryConfig

INSTRUMENTATION_NAME = "medicheck-sdk"
INSTRUMENTATION_VERSION = "0.1.0"

CREDENTIAL_KEYS = frozenset(
    {
        "token",
        "access_token",
        "refreshToken",
        "refresh_token",
        "authorization",
        "Authorization",
        "password",
    }
)
MASK = "***"

_tracer: trace.Tracer | None = None
_logger: structlog.typing.FilteringBoundLogger | None = None


def get_tracer() -> trace.Tracer:
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(INSTRUMENTATION_NAME, INSTRUMENTATION_VERSION)
    return _tracer


def get_logger() -> structlog.typing.FilteringBoundLogger:
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(INSTRUMENTATION_NAME)
    return _logger


def mask_credentials(
    logger: Any,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor replacing token and password values with a mask."""
    for key in CREDENTIAL_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = MASK
    return event_dict


def configure_telemetry(config: TelemetryConfig) -> None:
    """Install JSON logging at ``config.log_level`` and the SDK tracer.

    With telemetry disabled only the tracer is replaced, by a no-op one;
    logging is left as the application configured it.
    """
    global _tracer, _logger

    if not config.enabled:
        _tracer = trace.NoOpTracer()
        return

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", key="ts"),
            mask_credentials,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
    )

    _tracer = trace.get_tracer(config.service_name, INSTRUMENTATION_VERSION)
    _logger = structlog.get_logger(config.service_name)


@contextmanager
def trace_operation(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Iterator[trace.Span]:
    """Run a block inside a span named ``name``.

    Attributes whose value is None are skipped. An exception escaping the
    block marks the span as failed; SDK errors also tag it with their
    error code.
    """
    with get_tracer().start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            code = getattr(e, "code", None)
            if code is not None:
                span.set_attribute("medicheck.error_code", str(code))
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise

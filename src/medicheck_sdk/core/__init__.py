"""Core request pipeline for the MediCheck SDK.

Classifier, executor, token coordinator and retry controller, leaves first.
"""

from __future__ import annotations

from .classifier import classify, classify_transport_failure
from .errors import ErrorFactory
from .http_executor import RequestExecutor, encode_body, normalize_path
from .retry_controller import RequestState, RetryController
from .token_coordinator import TokenCoordinator

__all__ = [
    "classify",
    "classify_transport_failure",
    "ErrorFactory",
    "RequestExecutor",
    "encode_body",
    "normalize_path",
    "RequestState",
    "RetryController",
    "TokenCoordinator",
]

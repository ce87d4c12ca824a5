"""Error taxonomy and outcome classification for the request pipeline."""

from resilient_http_core.errors.exceptions import (
    APIError,
    ClientError,
    ConfigurationError,
    ConnectivityExhausted,
    ConnectivityLost,
    PipelineError,
    RefreshError,
    ServerRetryable,
    TransportError,
)
from resilient_http_core.errors.handler import (
    DEFAULT_RETRY_STATUS_CODES,
    Outcome,
    classify_outcome,
    is_connectivity_loss,
    raise_for_status,
)

__all__ = [
    "DEFAULT_RETRY_STATUS_CODES",
    "APIError",
    "ClientError",
    "ConfigurationError",
    "ConnectivityExhausted",
    "ConnectivityLost",
    "Outcome",
    "PipelineError",
    "RefreshError",
    "ServerRetryable",
    "TransportError",
    "classify_outcome",
    "is_connectivity_loss",
    "raise_for_status",
]

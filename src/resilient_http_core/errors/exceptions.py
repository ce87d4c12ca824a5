"""Structured exceptions for the request execution pipeline."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class PipelineError(Exception):
    """Base exception for every error raised by the pipeline."""

    pass


class ConfigurationError(PipelineError):
    """Invalid client configuration (bad option value, missing base URL)."""

    pass


class TransportError(PipelineError):
    """No response was obtained: timeout or generic I/O failure.

    Retryable up to the call's attempt budget.
    """

    def __init__(
        self,
        message: str,
        method: str | None = None,
        url: str | None = None,
        timed_out: bool = False,
    ):
        super().__init__(message)
        self.method = method
        self.url = url
        self.timed_out = timed_out


class ConnectivityLost(TransportError):
    """DNS or socket level failure: there is no network path.

    Triggers the connectivity probe loop instead of a direct retry.
    """

    pass


class ConnectivityExhausted(PipelineError):
    """The connectivity probe loop ran out of probes. Fatal for the call."""

    def __init__(self, message: str, probes: int = 0):
        super().__init__(message)
        self.probes = probes


class APIError(PipelineError):
    """A response was received but its status code is not a success."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: "httpx.Response | None" = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class ClientError(APIError):
    """Non-retryable status code (4xx and anything outside the retryable set)."""

    pass


class ServerRetryable(APIError):
    """Status code in the retryable set (502, 503, 504, 429 by default)."""

    pass


class RefreshError(PipelineError):
    """The token refresh operation failed or timed out.

    The authorization header is left untouched, so the next call attempts
    the refresh again.
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause

"""Outcome classification for transport attempts.

Every attempt ends in either an ``httpx.Response`` or an exception. The
executor and the retry policy work from the same classification so the two
never disagree about what a failure means.
"""

import errno
import socket
from collections.abc import Collection
from enum import Enum

import httpx

from resilient_http_core.errors.exceptions import (
    ClientError,
    ConnectivityExhausted,
    ConnectivityLost,
    ServerRetryable,
    TransportError,
)

DEFAULT_RETRY_STATUS_CODES: frozenset[int] = frozenset([429, 502, 503, 504])

# errno values that mean "no route to anything", not "this server said no"
_NETWORK_DOWN_ERRNOS = frozenset(
    code
    for code in (
        getattr(errno, "ENETUNREACH", None),
        getattr(errno, "ENETDOWN", None),
        getattr(errno, "EHOSTUNREACH", None),
    )
    if code is not None
)

# Failures of the request itself. Anything else is a bug and is not retried.
_TRANSPORT_EXCEPTIONS = (TransportError, httpx.TransportError, OSError, TimeoutError)


class Outcome(Enum):
    """Classification of a single transport attempt."""

    SUCCESS = "success"
    CLIENT_ERROR = "client_error"
    SERVER_RETRYABLE = "server_retryable"
    TRANSPORT_ERROR = "transport_error"
    CONNECTIVITY_LOST = "connectivity_lost"
    CONNECTIVITY_EXHAUSTED = "connectivity_exhausted"
    UNEXPECTED_ERROR = "unexpected_error"


def is_connectivity_loss(exc: BaseException) -> bool:
    """Return True if ``exc`` looks like the network itself is unavailable.

    Args:
        exc: Exception raised by a transport attempt

    Returns:
        True for DNS failures, connect failures and unreachable-network errors
    """
    if isinstance(exc, (ConnectivityLost, httpx.ConnectError, socket.gaierror)):
        return True
    return isinstance(exc, OSError) and exc.errno in _NETWORK_DOWN_ERRNOS


def classify_outcome(
    outcome: httpx.Response | BaseException,
    retry_status_codes: Collection[int] = DEFAULT_RETRY_STATUS_CODES,
) -> Outcome:
    """Classify a response or exception.

    Args:
        outcome: The response received, or the exception raised instead
        retry_status_codes: Status codes that count as retryable server errors

    Returns:
        The matching Outcome member
    """
    if isinstance(outcome, httpx.Response):
        if outcome.status_code in retry_status_codes:
            return Outcome.SERVER_RETRYABLE
        if outcome.is_success:
            return Outcome.SUCCESS
        return Outcome.CLIENT_ERROR

    if isinstance(outcome, ConnectivityExhausted):
        return Outcome.CONNECTIVITY_EXHAUSTED
    if is_connectivity_loss(outcome):
        return Outcome.CONNECTIVITY_LOST
    if isinstance(outcome, _TRANSPORT_EXCEPTIONS):
        return Outcome.TRANSPORT_ERROR
    return Outcome.UNEXPECTED_ERROR


def raise_for_status(
    response: httpx.Response,
    retry_status_codes: Collection[int] = DEFAULT_RETRY_STATUS_CODES,
) -> None:
    """Raise the pipeline exception matching a non-success response.

    The pipeline hands responses back unmodified; callers that prefer
    exceptions use this on the returned response.

    Args:
        response: HTTP response object
        retry_status_codes: Status codes that map to ServerRetryable

    Raises:
        ServerRetryable: status is in the retryable set
        ClientError: any other non-2xx status
    """
    outcome = classify_outcome(response, retry_status_codes)
    if outcome is Outcome.SUCCESS:
        return

    response_text = response.text[:200]
    message = f"HTTP {response.status_code}: {response_text}" if response_text else f"HTTP {response.status_code}"

    exc_class = ServerRetryable if outcome is Outcome.SERVER_RETRYABLE else ClientError
    raise exc_class(message, status_code=response.status_code, response=response)

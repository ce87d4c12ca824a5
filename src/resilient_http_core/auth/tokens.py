"""Bearer token helpers.

Only the ``exp`` claim of a JWT is inspected. Signatures are not verified:
the server is the authority, the client just wants to avoid sending a token
it already knows is stale.
"""

import base64
import binascii
import json
import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def strip_bearer(header_value: str) -> str:
    """Return the token part of an ``Authorization`` header value."""
    if header_value[: len(BEARER_PREFIX)].lower() == BEARER_PREFIX.lower():
        return header_value[len(BEARER_PREFIX) :]
    return header_value


def as_bearer(token: str) -> str:
    """Format a token as an ``Authorization`` header value."""
    return f"{BEARER_PREFIX}{strip_bearer(token)}"


def decode_expiry(token: str) -> float | None:
    """Return the ``exp`` claim of a JWT, or None.

    None means the token is not a JWT, cannot be decoded, or has no usable
    ``exp`` claim.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None

    payload = parts[1]
    payload += "=" * (-len(payload) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload))
    except (binascii.Error, ValueError):
        return None

    if not isinstance(claims, dict):
        return None
    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return float(exp)


def is_expired(token: str | None, *, leeway: float = 0.0, now: Callable[[], float] = time.time) -> bool:
    """Check whether a bearer token has expired.

    Args:
        token: Token, with or without the ``Bearer`` prefix
        leeway: Seconds before ``exp`` at which the token already counts as expired
        now: Clock returning epoch seconds

    Returns:
        True only for a decodable JWT whose ``exp`` is in the past. Opaque
        tokens and tokens without ``exp`` are never considered expired.
    """
    if not token:
        return False

    exp = decode_expiry(strip_bearer(token))
    if exp is None:
        logger.debug("Authorization token has no readable exp claim, treating as valid")
        return False
    return now() >= exp - leeway

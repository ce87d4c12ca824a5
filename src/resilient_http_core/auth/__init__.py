"""Authorization token lifecycle.

This package provides:
- Single-flight token refresh shared by all concurrent requests of a client
- JWT expiry inspection for bearer tokens
- Multi-source resolution of settings and initial tokens (value → env → .env → default)

Example:
    ```python
    from resilient_http_core.auth import RefreshSuccess, TokenRefreshCoordinator

    coordinator = TokenRefreshCoordinator()
    await coordinator.ensure_valid(config)  # refreshes at most once
    ```
"""

from resilient_http_core.auth.credentials import CredentialResolver
from resilient_http_core.auth.exceptions import (
    CredentialError,
    CredentialFileError,
    CredentialNotFoundError,
)
from resilient_http_core.auth.refresh import (
    RefreshFailure,
    RefreshResult,
    RefreshState,
    RefreshSuccess,
    TokenRefreshCoordinator,
)
from resilient_http_core.auth.tokens import as_bearer, decode_expiry, is_expired, strip_bearer

__all__ = [
    "CredentialError",
    "CredentialFileError",
    "CredentialNotFoundError",
    "CredentialResolver",
    "RefreshFailure",
    "RefreshResult",
    "RefreshState",
    "RefreshSuccess",
    "TokenRefreshCoordinator",
    "as_bearer",
    "decode_expiry",
    "is_expired",
    "strip_bearer",
]

"""Exceptions for credential resolution.

These are raised while building a client configuration from the
environment, before any request is made.

Example:
    ```python
    from resilient_http_core.auth.exceptions import CredentialNotFoundError

    try:
        config = ClientConfiguration.from_env()
    except CredentialNotFoundError as e:
        print(f"Set {e.env_var_name} first")
    ```
"""

from resilient_http_core.errors.exceptions import ConfigurationError


class CredentialError(ConfigurationError):
    """Base exception for credential-related errors."""

    pass


class CredentialNotFoundError(CredentialError):
    """Raised when a required credential cannot be resolved from any source.

    Attributes:
        env_var_name: The environment variable name that was checked (if any).
    """

    def __init__(self, message: str, env_var_name: str | None = None):
        super().__init__(message)
        self.env_var_name = env_var_name


class CredentialFileError(CredentialError):
    """Raised when a credential file cannot be read."""

    pass

"""Client configuration.

``ClientConfiguration`` holds the options of one client instance together
with its header map. The header map is the one piece of state shared by
every in-flight request: it is mutated in place, and only the token refresh
coordinator writes the ``Authorization`` entry.

Example:
    ```python
    from resilient_http_core.auth.refresh import RefreshSuccess
    from resilient_http_core.config import ClientConfiguration


    async def refresh() -> RefreshSuccess:
        return RefreshSuccess(await fetch_new_token())


    config = ClientConfiguration(
        base_url="https://api.example.com",
        headers={"Authorization": "Bearer eyJ..."},
        max_retry_attempts=3,
        refresh_token=refresh,
    )
    ```
"""

import copy
import dataclasses
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from random import Random
from typing import TYPE_CHECKING

from resilient_http_core.auth.credentials import CredentialResolver
from resilient_http_core.auth.tokens import as_bearer, strip_bearer
from resilient_http_core.errors.exceptions import ConfigurationError
from resilient_http_core.errors.handler import DEFAULT_RETRY_STATUS_CODES
from resilient_http_core.transport.connectivity import resolve_well_known_host

if TYPE_CHECKING:
    from resilient_http_core.auth.refresh import RefreshResult

AUTHORIZATION_HEADER = "Authorization"
ENV_PREFIX = "RESILIENT_HTTP_"

RefreshOperation = Callable[[], Awaitable["RefreshResult | str"]]
ConnectivityCheck = Callable[[], Awaitable[bool]]


@dataclass
class ClientConfiguration:
    """Options and shared header state for one client instance.

    Attributes:
        base_url: Base address that request paths are joined onto.
        headers: Headers sent with every request. Mutated in place.
        timeout: Per-attempt request timeout in seconds.
        max_retry_attempts: Extra attempts allowed after the first one.
        max_delay_ms: Upper bound for a single backoff delay.
        wait_for_token_refresh: Refresh expired tokens and make requests wait
            for an in-flight refresh. When False, token handling is skipped.
        refresh_token: Async callback returning a RefreshResult (or a bare
            token string on success). None disables refreshing.
        connectivity_check: Async predicate used by the connectivity probe loop.
        retry_api_call: Set to False to disable retries altogether.
        retry_status_codes: Status codes that are retried.
        refresh_timeout: Seconds the refresh callback may take.
        encoding: Encoding used for text request bodies.
        token_leeway: Seconds before ``exp`` at which a token counts as expired.
        random: Source of backoff jitter. Seed it for reproducible delays.
    """

    base_url: str
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float = 10.0
    max_retry_attempts: int = 3
    max_delay_ms: int = 60000
    wait_for_token_refresh: bool = True
    refresh_token: RefreshOperation | None = None
    connectivity_check: ConnectivityCheck = resolve_well_known_host
    retry_api_call: bool = True
    retry_status_codes: frozenset[int] = DEFAULT_RETRY_STATUS_CODES
    refresh_timeout: float = 20.0
    encoding: str = "utf-8"
    token_leeway: float = 0.0
    random: Random = field(default_factory=Random, repr=False)

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ConfigurationError("base_url must not be empty")
        if self.max_retry_attempts < 0:
            raise ConfigurationError(f"max_retry_attempts must be >= 0, got {self.max_retry_attempts}")
        if self.max_delay_ms < 0:
            raise ConfigurationError(f"max_delay_ms must be >= 0, got {self.max_delay_ms}")
        if self.timeout <= 0 or self.refresh_timeout <= 0:
            raise ConfigurationError("timeout and refresh_timeout must be positive")
        # Private copy: clients built from one dict literal must not share tokens.
        self.headers = dict(self.headers)
        self.retry_status_codes = frozenset(self.retry_status_codes)

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        *,
        resolver: CredentialResolver | None = None,
        **overrides,
    ) -> "ClientConfiguration":
        """Build a configuration from environment variables (and .env).

        Reads ``{prefix}BASE_URL`` (required), ``{prefix}ACCESS_TOKEN`` (or a
        file holding it, named by ``{prefix}ACCESS_TOKEN_FILE``),
        ``{prefix}TIMEOUT``, ``{prefix}MAX_RETRY_ATTEMPTS`` and
        ``{prefix}MAX_DELAY_MS``. Keyword overrides win over the environment,
        including an ``Authorization`` entry in ``headers``.

        Raises:
            CredentialNotFoundError: The base URL is not set anywhere.
            CredentialFileError: The token file is configured but unreadable.
            ConfigurationError: A numeric variable does not parse.
        """
        resolver = resolver or CredentialResolver()

        base_url = resolver.resolve(
            value=overrides.pop("base_url", None),
            env_var_name=f"{prefix}BASE_URL",
            required=True,
            secret=False,
        )
        headers = dict(overrides.pop("headers", {}))
        if not any(name.lower() == AUTHORIZATION_HEADER.lower() for name in headers):
            token = resolver.resolve(env_var_name=f"{prefix}ACCESS_TOKEN")
            if not token:
                token_file = resolver.resolve(env_var_name=f"{prefix}ACCESS_TOKEN_FILE", secret=False)
                if token_file:
                    token = resolver.resolve_from_file(file_path=token_file, required=True)
            if token:
                headers[AUTHORIZATION_HEADER] = as_bearer(token)

        return cls(
            base_url=base_url,
            headers=headers,
            timeout=resolver.resolve_int(
                value=overrides.pop("timeout", None), env_var_name=f"{prefix}TIMEOUT", default=10
            ),
            max_retry_attempts=resolver.resolve_int(
                value=overrides.pop("max_retry_attempts", None),
                env_var_name=f"{prefix}MAX_RETRY_ATTEMPTS",
                default=3,
            ),
            max_delay_ms=resolver.resolve_int(
                value=overrides.pop("max_delay_ms", None),
                env_var_name=f"{prefix}MAX_DELAY_MS",
                default=60000,
            ),
            **overrides,
        )

    def _header_key(self, name: str) -> str | None:
        lowered = name.lower()
        for key in self.headers:
            if key.lower() == lowered:
                return key
        return None

    def add_headers(self, headers: dict[str, str]) -> None:
        """Merge ``headers`` into the shared header map."""
        for name, value in headers.items():
            existing = self._header_key(name)
            if existing is not None and existing != name:
                del self.headers[existing]
            self.headers[name] = value

    def replace_headers(self, headers: dict[str, str]) -> None:
        """Replace the header map contents, keeping the same dict object."""
        self.headers.clear()
        self.headers.update(headers)

    def remove_header(self, name: str) -> bool:
        """Remove a header. Returns True if it was present."""
        key = self._header_key(name)
        if key is None:
            return False
        del self.headers[key]
        return True

    def has_header(self, name: str) -> bool:
        return self._header_key(name) is not None

    def remove_authorization(self) -> bool:
        return self.remove_header(AUTHORIZATION_HEADER)

    def authorization_present(self) -> bool:
        return self.has_header(AUTHORIZATION_HEADER)

    def authorization_token(self) -> str | None:
        """Return the current token without its ``Bearer`` prefix."""
        key = self._header_key(AUTHORIZATION_HEADER)
        if key is None:
            return None
        return strip_bearer(self.headers[key])

    def set_authorization_token(self, token: str) -> None:
        """Install ``token`` as the bearer authorization header.

        A single dict assignment, so concurrent readers see either the old
        or the new value.
        """
        key = self._header_key(AUTHORIZATION_HEADER) or AUTHORIZATION_HEADER
        self.headers[key] = as_bearer(token)

    def clone(self) -> "ClientConfiguration":
        """Return an independent copy with its own header map."""
        return self.copy_with()

    def copy_with(self, **changes) -> "ClientConfiguration":
        """Return a copy with ``changes`` applied.

        Headers are always copied; callbacks and the random source are shared.
        """
        changes.setdefault("headers", copy.copy(self.headers))
        return dataclasses.replace(self, **changes)

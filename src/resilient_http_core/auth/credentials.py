"""Resolve client settings and access tokens from several sources.

``ClientConfiguration.from_env`` uses this to build a configuration without
hard-coding the base URL or the initial access token.

Resolution order (highest to lowest priority):
1. Explicitly provided value
2. Environment variable
3. .env file (python-dotenv, loaded into the environment once)
4. Default value

Example:
    ```python
    from resilient_http_core.auth import CredentialResolver

    resolver = CredentialResolver()
    token = resolver.resolve(env_var_name="RESILIENT_HTTP_ACCESS_TOKEN")
    retries = resolver.resolve_int(env_var_name="RESILIENT_HTTP_MAX_RETRY_ATTEMPTS", default=3)
    ```

Tokens are never logged; only the source they came from is.
"""

import logging
import os
from pathlib import Path
from threading import Lock

from dotenv import load_dotenv

from resilient_http_core.auth.exceptions import CredentialFileError, CredentialNotFoundError
from resilient_http_core.errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CredentialResolver:
    """Resolve settings from explicit values, the environment, .env files or defaults.

    Attributes:
        _dotenv_loaded: Whether the .env file has been loaded.
        _dotenv_lock: Guards the one-time .env load.
    """

    def __init__(self, dotenv_path: str | None = None, load_dotenv: bool = True):
        """Initialize the resolver.

        Args:
            dotenv_path: Path to a .env file. If None, python-dotenv searches
                parent directories.
            load_dotenv: Set to False to skip .env loading entirely.
        """
        self._dotenv_loaded = False
        self._dotenv_lock = Lock()
        self._dotenv_path = dotenv_path
        self._load_dotenv_enabled = load_dotenv

        if self._load_dotenv_enabled:
            self._ensure_dotenv_loaded()

    def _ensure_dotenv_loaded(self) -> None:
        if self._dotenv_loaded:
            return

        with self._dotenv_lock:
            if self._dotenv_loaded:
                return

            try:
                load_dotenv(dotenv_path=self._dotenv_path)
                logger.debug("Loaded .env file for settings resolution")
            except OSError as e:
                logger.warning(f"Failed to load .env file: {e}")
            self._dotenv_loaded = True

    def resolve(
        self,
        *,
        value: str | None = None,
        env_var_name: str | None = None,
        default: str | None = None,
        required: bool = False,
        secret: bool = True,
    ) -> str | None:
        """Resolve a single string setting.

        Args:
            value: Explicit value; wins over every other source.
            env_var_name: Environment variable to check.
            default: Fallback when nothing else is set.
            required: Raise instead of returning None.
            secret: Mask the value in log messages (default True).

        Returns:
            The resolved value, or None if not found and not required.

        Raises:
            CredentialNotFoundError: required=True and no source had a value.
        """
        result = None
        source = None

        if value is not None:
            result = value
            source = "explicit parameter"
        elif env_var_name and env_var_name in os.environ:
            result = os.environ[env_var_name]
            source = f"environment variable '{env_var_name}'"
        elif default is not None:
            result = default
            source = "default value"

        if result is not None:
            shown = "***" if secret else result
            logger.debug(f"Resolved setting from {source}: {shown}")

        if required and result is None:
            error_msg = "Required setting not found"
            if env_var_name:
                error_msg += f" (checked env var: {env_var_name})"
            raise CredentialNotFoundError(error_msg, env_var_name=env_var_name)

        return result

    def resolve_int(
        self,
        *,
        value: int | None = None,
        env_var_name: str | None = None,
        default: int,
    ) -> int:
        """Resolve an integer setting such as a retry budget or timeout.

        Raises:
            ConfigurationError: The environment holds a non-integer value.
        """
        if value is not None:
            return value

        raw = self.resolve(env_var_name=env_var_name, secret=False)
        if raw is None or raw.strip() == "":
            return default

        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(f"{env_var_name} must be an integer, got {raw!r}") from None

    def resolve_from_file(
        self,
        *,
        file_path: str | Path | None = None,
        env_var_name: str | None = None,
        required: bool = False,
    ) -> str | None:
        """Read a token from a file, e.g. a mounted secret.

        The path may come from ``env_var_name`` and supports ``~`` and
        ``$VAR`` expansion. Surrounding whitespace is stripped.

        Raises:
            CredentialFileError: required=True and the file cannot be read.
        """
        path_to_use = None
        if file_path is not None:
            path_to_use = str(file_path)
        elif env_var_name:
            path_to_use = self.resolve(env_var_name=env_var_name, secret=False)

        if path_to_use is None:
            if required:
                error_msg = "No file path provided for token resolution"
                if env_var_name:
                    error_msg += f" (env var '{env_var_name}' not set)"
                raise CredentialFileError(error_msg)
            return None

        path_obj = Path(os.path.expanduser(os.path.expandvars(path_to_use)))

        try:
            content = path_obj.read_text().strip()
        except FileNotFoundError:
            error_msg = f"Token file not found: {path_obj}"
            if required:
                raise CredentialFileError(error_msg) from None
            logger.debug(error_msg)
            return None
        except OSError as e:
            error_msg = f"Error reading token file {path_obj}: {e}"
            if required:
                raise CredentialFileError(error_msg) from e
            logger.warning(error_msg)
            return None

        logger.debug(f"Resolved token from file: {path_obj} (***)")
        return content

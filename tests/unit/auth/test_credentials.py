"""Tests for multi-source settings resolution.

CredentialResolver feeds ClientConfiguration.from_env with the base URL,
the initial access token and numeric options.
"""

import logging

import pytest

from resilient_http_core.auth import CredentialResolver
from resilient_http_core.auth.exceptions import CredentialFileError, CredentialNotFoundError
from resilient_http_core.errors.exceptions import ConfigurationError


class TestCredentialResolverInit:
    """Test CredentialResolver initialization."""

    def test_init_default(self):
        resolver = CredentialResolver()
        assert resolver._dotenv_loaded

    def test_init_skip_dotenv(self):
        resolver = CredentialResolver(load_dotenv=False)
        assert not resolver._dotenv_loaded

    def test_dotenv_values_reach_environment(self, tmp_path, monkeypatch):
        """Values from a .env file become resolvable like environment variables."""
        dotenv_file = tmp_path / ".env"
        dotenv_file.write_text("TEST_DOTENV_BASE_URL=https://dotenv.example.com\n")
        monkeypatch.delenv("TEST_DOTENV_BASE_URL", raising=False)

        resolver = CredentialResolver(dotenv_path=str(dotenv_file))
        result = resolver.resolve(env_var_name="TEST_DOTENV_BASE_URL", secret=False)

        assert result == "https://dotenv.example.com"


class TestCredentialResolverResolve:
    """Test resolution priority ordering."""

    def test_explicit_value_overrides_all(self, monkeypatch):
        monkeypatch.setenv("TEST_PRIORITY_KEY", "env-value")
        resolver = CredentialResolver(load_dotenv=False)

        result = resolver.resolve(value="explicit-value", env_var_name="TEST_PRIORITY_KEY", default="default-value")

        assert result == "explicit-value"

    def test_environment_overrides_default(self, monkeypatch):
        monkeypatch.setenv("TEST_PRIORITY_KEY", "env-value")
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve(env_var_name="TEST_PRIORITY_KEY", default="default-value") == "env-value"

    def test_default_used_when_nothing_else_set(self):
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve(env_var_name="TEST_NONEXISTENT", default="default-value") == "default-value"

    def test_returns_none_when_not_found(self):
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve(env_var_name="TEST_NONEXISTENT") is None

    def test_raises_when_required_and_not_found(self):
        resolver = CredentialResolver(load_dotenv=False)

        with pytest.raises(CredentialNotFoundError) as exc_info:
            resolver.resolve(env_var_name="TEST_NONEXISTENT", required=True)

        assert "Required setting not found" in str(exc_info.value)
        assert exc_info.value.env_var_name == "TEST_NONEXISTENT"

    def test_secret_values_are_masked_in_logs(self, monkeypatch, caplog):
        monkeypatch.setenv("TEST_ACCESS_TOKEN", "super-secret-token")
        resolver = CredentialResolver(load_dotenv=False)

        with caplog.at_level(logging.DEBUG, logger="resilient_http_core.auth.credentials"):
            resolver.resolve(env_var_name="TEST_ACCESS_TOKEN")

        assert "super-secret-token" not in caplog.text
        assert "***" in caplog.text


class TestCredentialResolverResolveInt:
    """Test integer option resolution."""

    def test_explicit_value_wins(self, monkeypatch):
        monkeypatch.setenv("TEST_RETRIES", "9")
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_int(value=2, env_var_name="TEST_RETRIES", default=3) == 2

    def test_parses_environment(self, monkeypatch):
        monkeypatch.setenv("TEST_RETRIES", " 7 ")
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_int(env_var_name="TEST_RETRIES", default=3) == 7

    def test_blank_environment_uses_default(self, monkeypatch):
        monkeypatch.setenv("TEST_RETRIES", "")
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_int(env_var_name="TEST_RETRIES", default=3) == 3

    def test_invalid_integer_raises(self, monkeypatch):
        monkeypatch.setenv("TEST_RETRIES", "lots")
        resolver = CredentialResolver(load_dotenv=False)

        with pytest.raises(ConfigurationError, match="TEST_RETRIES"):
            resolver.resolve_int(env_var_name="TEST_RETRIES", default=3)


class TestCredentialResolverFromFile:
    """Test file-based token resolution."""

    def test_strips_whitespace(self, tmp_path):
        token_file = tmp_path / "token"
        token_file.write_text("  file-token-abc123  \n")

        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_from_file(file_path=token_file) == "file-token-abc123"

    def test_path_from_env_var(self, tmp_path, monkeypatch):
        token_file = tmp_path / "secret.txt"
        token_file.write_text("secret-from-env-path")
        monkeypatch.setenv("TEST_TOKEN_FILE", str(token_file))

        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_from_file(env_var_name="TEST_TOKEN_FILE") == "secret-from-env-path"

    def test_env_var_expansion_in_path(self, tmp_path, monkeypatch):
        (tmp_path / "token").write_text("expanded")
        monkeypatch.setenv("TEST_CONFIG_DIR", str(tmp_path))

        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_from_file(file_path="$TEST_CONFIG_DIR/token") == "expanded"

    def test_missing_file_returns_none(self, tmp_path):
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_from_file(file_path=tmp_path / "missing") is None

    def test_missing_file_required_raises(self, tmp_path):
        resolver = CredentialResolver(load_dotenv=False)

        with pytest.raises(CredentialFileError, match="not found"):
            resolver.resolve_from_file(file_path=tmp_path / "missing", required=True)

    def test_no_path_required_raises(self):
        resolver = CredentialResolver(load_dotenv=False)

        with pytest.raises(CredentialFileError, match="TEST_TOKEN_FILE"):
            resolver.resolve_from_file(env_var_name="TEST_TOKEN_FILE", required=True)

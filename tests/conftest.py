"""Shared test fixtures for infomaniak_login.

Provides reusable fixtures for building configurations and token payloads,
isolating config directories, managing output state, and running CLI
commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest

from infomaniak_login.models import AccessType, LoginConfig
from infomaniak_login.output import OutputFormat, OutputManager, reset_output, set_output


LOGIN_URL = "https://login.example.test/"
TOKEN_URL = "https://login.example.test/token"
REDIRECT_URI = "com.example.app://oauth2redirect"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()
    logger = logging.getLogger("infomaniak_login")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def login_config() -> LoginConfig:
    """An offline (refresh-token) configuration against a test host."""
    return LoginConfig(
        client_id="test-client",
        login_url=LOGIN_URL,
        redirect_uri=REDIRECT_URI,
        access_type=AccessType.OFFLINE,
    )


@pytest.fixture
def infinite_config() -> LoginConfig:
    """A configuration asking for non-expiring tokens."""
    return LoginConfig(
        client_id="test-client",
        login_url=LOGIN_URL,
        redirect_uri=REDIRECT_URI,
        access_type=AccessType.NONE,
    )


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config, clears all IK_LOGIN_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("infomaniak_login.config._is_xdg_platform", lambda: True)

    for var in [
        "IK_LOGIN_CLIENT_ID",
        "IK_LOGIN_URL",
        "IK_LOGIN_REDIRECT_URI",
        "IK_LOGIN_ACCESS_TYPE",
        "IK_LOGIN_CONFIG",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Token payloads
# ---------------------------------------------------------------------------


def make_token_payload(
    access_token: str = "access-0123456789abcdef",
    refresh_token: str | None = "refresh-0123456789abcdef",
    expires_in: int | None = 7200,
    user_id: int = 42,
) -> dict[str, Any]:
    """Build a token endpoint JSON payload."""
    data: dict[str, Any] = {
        "access_token": access_token,
        "token_type": "Bearer",
        "scope": "user_info",
        "user_id": user_id,
    }
    if refresh_token is not None:
        data["refresh_token"] = refresh_token
    if expires_in is not None:
        data["expires_in"] = expires_in
    return data


@pytest.fixture
def token_payload() -> dict[str, Any]:
    return make_token_payload()


@pytest.fixture
def payload_factory():
    """The :func:`make_token_payload` builder, for tests needing variants."""
    return make_token_payload


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()

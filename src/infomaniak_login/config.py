"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent state of the ``ik-login`` CLI:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.infomaniak-login/`` on macOS and Windows. See :func:`get_config_dir`
  and :func:`get_data_dir`.
* **Client config** -- a single ``config.json`` holding
  :class:`~infomaniak_login.models.LoginConfig` fields.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  ``IK_LOGIN_*`` environment variables, the config file and defaults.
* **Token files** -- :func:`save_token` / :func:`load_token`. The library
  never stores tokens itself; this is the CLI's storage choice.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) so a crash never leaves a half-written file.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from infomaniak_login.exceptions import ConfigError
from infomaniak_login.models import ApiToken, LoginConfig

_APP_NAME = "infomaniak-login"
_CONFIG_FILENAME = "config.json"

ENV_CLIENT_ID = "IK_LOGIN_CLIENT_ID"
ENV_LOGIN_URL = "IK_LOGIN_URL"
ENV_REDIRECT_URI = "IK_LOGIN_REDIRECT_URI"
ENV_ACCESS_TYPE = "IK_LOGIN_ACCESS_TYPE"
ENV_CONFIG = "IK_LOGIN_CONFIG"

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8765/callback"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform uses XDG Base Directory paths (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/infomaniak-login/`` (default
    ``~/.config/infomaniak-login/``). On macOS/Windows: ``~/.infomaniak-login/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/infomaniak-login/`` (default
    ``~/.local/share/infomaniak-login/``). On macOS/Windows:
    ``~/.infomaniak-login/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is
    given it is applied to the temp file before any content is written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Client config file ---


def config_path() -> Path:
    """Path to the config file (``$IK_LOGIN_CONFIG`` overrides the default)."""
    override = os.environ.get(ENV_CONFIG)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


def load_config_file(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the raw config file as a dict.

    Returns:
        The parsed JSON object, or an empty dict if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = path or config_path()
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a JSON object")
    return data


def save_config_file(data: dict[str, Any], path: Optional[Path] = None) -> None:
    """Persist raw config values atomically."""
    _atomic_write(path or config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_config(
    client_id: Optional[str] = None,
    login_url: Optional[str] = None,
    redirect_uri: Optional[str] = None,
    access_type: Optional[str] = None,
    path: Optional[Path] = None,
) -> LoginConfig:
    """Resolve the effective :class:`~infomaniak_login.models.LoginConfig`.

    Precedence (high to low):
        1. Arguments (CLI flags)
        2. Environment variables (``IK_LOGIN_CLIENT_ID``, ``IK_LOGIN_URL``,
           ``IK_LOGIN_REDIRECT_URI``, ``IK_LOGIN_ACCESS_TYPE``)
        3. The config file
        4. Defaults

    Raises:
        ConfigError: If no client id is configured or the values fail
            validation.
    """
    data = load_config_file(path)

    layers = (
        ("client_id", ENV_CLIENT_ID, client_id),
        ("login_url", ENV_LOGIN_URL, login_url),
        ("redirect_uri", ENV_REDIRECT_URI, redirect_uri),
        ("access_type", ENV_ACCESS_TYPE, access_type),
    )
    for key, env_var, cli_value in layers:
        env_value = os.environ.get(env_var)
        if cli_value is not None:
            data[key] = cli_value
        elif env_value:
            data[key] = env_value

    if not data.get("client_id"):
        raise ConfigError(
            f"No client id configured (use --client-id, ${ENV_CLIENT_ID} "
            "or 'ik-login config set client_id ...')"
        )
    data.setdefault("redirect_uri", DEFAULT_REDIRECT_URI)

    try:
        return LoginConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Token files ---


def save_token(path: Path, token: ApiToken) -> None:
    """Write *token* to *path* atomically with ``0o600`` permissions."""
    _atomic_write(path, token.to_json() + "\n", mode=0o600)


def load_token(path: Path) -> ApiToken:
    """Read a token previously written by :func:`save_token`.

    Raises:
        ConfigError: If the file is missing or does not hold a valid token.
    """
    if not path.is_file():
        raise ConfigError(f"Token file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read token file {path}: {exc}") from exc
    try:
        return ApiToken.model_validate_json(text)
    except ValidationError as exc:
        # The validation message would echo the token's secrets.
        raise ConfigError(
            f"Invalid token file {path}: {exc.error_count()} validation error(s)"
        ) from None


# --- Secret source resolution ---


def resolve_secret(source: str) -> str:
    """Resolve a secret (e.g. an attestation token) from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts the user without echo (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Secret file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read secret file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for a secret: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter secret: ")

    raise ConfigError(f"Unknown secret source format: {source}")

"""Helpers shared by the CLI sub-commands.

Commands read their shared state from ``ctx.obj`` (filled by
:func:`~infomaniak_login.app.main_callback`): configuration overrides, the
``force`` flag, and optionally an httpx ``transport`` and a ``presenter``
injected by tests or embedding applications through
``CliRunner.invoke(..., obj={...})``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine, Optional, TypeVar

import httpx
import typer

from infomaniak_login.auth.presenter import AuthorizationPresenter, ConsolePresenter
from infomaniak_login.client.token_client import TokenClient
from infomaniak_login.exceptions import LoginError
from infomaniak_login.models import ApiToken, LoginConfig
from infomaniak_login.output import error

T = TypeVar("T")


def _obj(ctx: typer.Context) -> dict[str, Any]:
    root = ctx.find_root()
    return root.obj if isinstance(root.obj, dict) else {}


def resolve_login_config(ctx: typer.Context) -> LoginConfig:
    """Resolve the effective config with the root callback's overrides.

    Raises:
        typer.Exit: With the config error's exit code.
    """
    from infomaniak_login.config import resolve_config

    overrides = _obj(ctx).get("overrides", {})
    try:
        return resolve_config(**overrides)
    except LoginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def make_token_client(ctx: typer.Context, config: LoginConfig) -> TokenClient:
    transport: Optional[httpx.AsyncBaseTransport] = _obj(ctx).get("transport")
    return TokenClient(config, transport=transport)


def make_presenter(ctx: typer.Context) -> AuthorizationPresenter:
    return _obj(ctx).get("presenter") or ConsolePresenter()


def is_forced(ctx: typer.Context) -> bool:
    return bool(_obj(ctx).get("force", False))


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run *coro* to completion, turning a :class:`LoginError` into a clean exit."""
    try:
        return asyncio.run(coro)
    except LoginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def token_summary(token: ApiToken) -> dict[str, Any]:
    """Displayable view of *token* with its secrets truncated."""
    return {
        "user_id": token.user_id,
        "token_type": token.token_type,
        "scope": token.scope,
        "access_token": token.truncated_access_token,
        "refresh_token": token.truncated_refresh_token or None,
        "expires_in": token.expires_in,
        "expiration_date": (
            token.expiration_date.isoformat() if token.expiration_date else "never"
        ),
    }

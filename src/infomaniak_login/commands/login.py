"""Login commands -- run the interactive PKCE flow.

Provides ``ik-login login``, which runs one authorization attempt through
a :class:`~infomaniak_login.auth.presenter.ConsolePresenter` and exchanges
the resulting code for a token, and ``ik-login authorize-url``, which only
prints an authorization URL to check the client configuration.

Typical workflow::

    ik-login login --token-file token.json
    ik-login token show --token-file token.json
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from infomaniak_login.auth.authorization import build_authorization_url
from infomaniak_login.auth.pkce import generate_pkce
from infomaniak_login.auth.presenter import AuthorizationPresenter
from infomaniak_login.auth.session import LoginSession
from infomaniak_login.client.token_client import TokenClient
from infomaniak_login.commands.common import (
    make_presenter,
    make_token_client,
    resolve_login_config,
    run,
    token_summary,
)
from infomaniak_login.exceptions import LoginError
from infomaniak_login.models import ApiToken
from infomaniak_login.output import error, format_response, print_data, success, suggest


async def _login(
    session: LoginSession,
    presenter: AuthorizationPresenter,
    client: TokenClient,
    hide_create_account: bool,
) -> ApiToken:
    result = await session.login(presenter, hide_create_account=hide_create_account)
    async with client:
        return await client.get_api_token(result.code, result.verifier)


def login_command(
    ctx: typer.Context,
    hide_create_account: bool = typer.Option(
        False, "--hide-create-account", help="Hide account creation on the login page."
    ),
    token_file: Optional[Path] = typer.Option(
        None, "--token-file", help="Save the obtained token to this file (mode 0600)."
    ),
) -> None:
    """Log in interactively and obtain a token.

    Prints the authorization URL, reads the redirect URL pasted back by
    the user, and exchanges the authorization code for a token. The token
    summary is printed with its secrets truncated.

    Example::

        ik-login --client-id my-app login --token-file token.json
    """
    from infomaniak_login.config import save_token

    config = resolve_login_config(ctx)
    session = LoginSession(config)
    token = run(
        _login(session, make_presenter(ctx), make_token_client(ctx, config), hide_create_account)
    )

    if token_file is not None:
        try:
            save_token(token_file, token)
        except OSError as exc:
            error(f"Cannot write token file {token_file}: {exc}")
            raise typer.Exit(code=1) from None
        success(f"Token saved to {token_file}")
        if token.refresh_token:
            suggest(f"Refresh it later: ik-login token refresh --token-file {token_file}")
    else:
        success("Login completed")

    format_response(token_summary(token))


def authorize_url_command(
    ctx: typer.Context,
    hide_create_account: bool = typer.Option(
        False, "--hide-create-account", help="Hide account creation on the login page."
    ),
) -> None:
    """Print an authorization URL for the current configuration.

    The PKCE verifier behind the URL is discarded, so a login completed
    from it cannot be exchanged. Use it to check the client id and
    redirect URI registration.
    """
    config = resolve_login_config(ctx)
    pkce = generate_pkce(config.hash_mode_short)
    try:
        url = build_authorization_url(
            config,
            pkce.code_challenge,
            pkce.code_challenge_method,
            hide_create_account=hide_create_account,
        )
    except LoginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    print_data(url)

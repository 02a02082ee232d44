"""Token commands -- refresh, derive, revoke and inspect saved tokens.

Provides the ``ik-login token`` sub-command group. Every command reads a
token file written by ``ik-login login --token-file``.

Typical workflow::

    ik-login token show --token-file token.json
    ik-login token refresh --token-file token.json
    ik-login token derive --token-file token.json --attestation env:APP_ATTESTATION \\
        --output derived.json
    ik-login token revoke --token-file token.json
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from infomaniak_login.commands.common import (
    is_forced,
    make_token_client,
    resolve_login_config,
    run,
    token_summary,
)
from infomaniak_login.exceptions import LoginError, TransportError
from infomaniak_login.models import ApiToken
from infomaniak_login.output import error, format_response, info, success, warning

token_app = typer.Typer(no_args_is_help=True)

_TOKEN_FILE_OPTION = typer.Option(..., "--token-file", "-t", help="Token file to read.")


def _load(token_file: Path) -> ApiToken:
    from infomaniak_login.config import load_token

    try:
        return load_token(token_file)
    except LoginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _save(path: Path, token: ApiToken) -> None:
    from infomaniak_login.config import save_token

    try:
        save_token(path, token)
    except OSError as exc:
        error(f"Cannot write token file {path}: {exc}")
        raise typer.Exit(code=1) from None


@token_app.command("show")
def token_show(token_file: Path = _TOKEN_FILE_OPTION) -> None:
    """Show a saved token with its secrets truncated."""
    token = _load(token_file)
    format_response(token_summary(token))
    if token.is_expired():
        warning("This token has expired.")


@token_app.command("refresh")
def token_refresh(ctx: typer.Context, token_file: Path = _TOKEN_FILE_OPTION) -> None:
    """Refresh a saved token and replace it in the same file.

    The provider rotates refresh tokens, so the old file content is no
    longer usable once the refresh succeeds.
    """
    config = resolve_login_config(ctx)
    token = _load(token_file)
    client = make_token_client(ctx, config)
    new_token = run(client.refresh_token(token))
    _save(token_file, new_token)
    success(f"Token refreshed and saved to {token_file}")
    format_response(token_summary(new_token))


@token_app.command("derive")
def token_derive(
    ctx: typer.Context,
    token_file: Path = _TOKEN_FILE_OPTION,
    attestation: str = typer.Option(
        ...,
        "--attestation",
        "-a",
        help="Attestation token source: env:VAR, file:/path, or prompt.",
    ),
    output_file: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Save the derived token to this file."
    ),
) -> None:
    """Exchange a saved token for a derived one using an attestation token."""
    from infomaniak_login.config import resolve_secret

    config = resolve_login_config(ctx)
    token = _load(token_file)
    try:
        attestation_token = resolve_secret(attestation)
    except LoginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    client = make_token_client(ctx, config)
    derived = run(client.derive_token(token, attestation_token))
    if output_file is not None:
        _save(output_file, derived)
        success(f"Derived token saved to {output_file}")
    format_response(token_summary(derived))


@token_app.command("revoke")
def token_revoke(
    ctx: typer.Context,
    token_file: Path = _TOKEN_FILE_OPTION,
    keep_file: bool = typer.Option(
        False, "--keep-file", help="Keep the token file after revoking."
    ),
) -> None:
    """Revoke a saved token and delete its file.

    Asks for confirmation unless ``--force`` is active. When the request
    cannot reach the server the token may still be valid and the file is
    kept.
    """
    config = resolve_login_config(ctx)
    token = _load(token_file)

    if not is_forced(ctx):
        confirmed = typer.confirm(f"Revoke the token in {token_file}?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    client = make_token_client(ctx, config)

    async def _revoke() -> None:
        try:
            await client.delete_api_token(token)
        except TransportError:
            warning("Revocation did not reach the server; the token may still be valid.")
            raise

    run(_revoke())
    if not keep_file:
        token_file.unlink(missing_ok=True)
    success("Token revoked.")

"""Typer application and CLI entry point for ik-login.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``login``, ``authorize-url``, ``token``,
``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`infomaniak_login.config`: Configuration resolution.
    :mod:`infomaniak_login.output`: Output formatting initialised in
    :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from infomaniak_login import __version__
from infomaniak_login.commands.config import config_app
from infomaniak_login.commands.login import authorize_url_command, login_command
from infomaniak_login.commands.token import token_app
from infomaniak_login.exit_codes import EXIT_GENERIC_FAILURE
from infomaniak_login.models import AccessType


app = typer.Typer(
    name="ik-login",
    help="Log in to Infomaniak with OAuth2 Authorization Code + PKCE.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("login")(login_command)
app.command("authorize-url")(authorize_url_command)
app.add_typer(token_app, name="token", help="Token management.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"ik-login {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="OAuth2 client id of the application."
    ),
    login_url: Optional[str] = typer.Option(
        None, "--login-url", help="Login server base URL."
    ),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="Redirect URI registered for the client."
    ),
    access_type: Optional[AccessType] = typer.Option(
        None, "--access-type", help="'offline' requests a refresh token."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~infomaniak_login.output.OutputManager`
    and logging from CLI flags, and stores the configuration overrides and
    ``force`` flag in ``ctx.obj`` for the sub-commands. Entries already in
    ``ctx.obj`` (an httpx ``transport`` or a ``presenter``) are kept.
    """
    from infomaniak_login.output import (
        OutputFormat,
        OutputManager,
        configure_logging,
        set_output,
    )

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    configure_logging(verbose=verbose, no_color=no_color)

    overrides = {
        "client_id": client_id,
        "login_url": login_url,
        "redirect_uri": redirect_uri,
        "access_type": access_type.value if access_type is not None else None,
    }
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {k: v for k, v in overrides.items() if v is not None}
    ctx.obj["force"] = force


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from infomaniak_login.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``ik-login`` console script.

    Unhandled :class:`~infomaniak_login.exceptions.LoginError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from infomaniak_login.exceptions import LoginError
        from infomaniak_login.output import error

        if isinstance(exc, LoginError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)

"""Config commands -- view and modify the client configuration.

Provides the ``ik-login config`` sub-command group for reading, updating,
and resetting the config file that holds the
:class:`~infomaniak_login.models.LoginConfig` fields (client id, login URL,
redirect URI, access type).
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from infomaniak_login.commands.common import is_forced
from infomaniak_login.exceptions import LoginError
from infomaniak_login.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the config file path and its values.

    Example::

        ik-login config show
        ik-login --json config show
    """
    from infomaniak_login.config import config_path, load_config_file

    try:
        data = load_config_file()
    except LoginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config file: {config_path()}")
    format_response(data)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key, e.g. 'client_id' or 'access_type'."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is validated against
    :class:`~infomaniak_login.models.LoginConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key is unknown or the value is invalid.

    Example::

        ik-login config set client_id my-client-id
        ik-login config set access_type none
        ik-login config set login_url https://login.preprod.dev.infomaniak.ch/
    """
    from infomaniak_login.config import DEFAULT_REDIRECT_URI, load_config_file, save_config_file
    from infomaniak_login.models import LoginConfig

    if key not in LoginConfig.model_fields:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    try:
        data = load_config_file()
    except LoginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    data[key] = value

    # Required fields may not be set yet; placeholders let the rest validate.
    candidate = {"client_id": "placeholder", "redirect_uri": DEFAULT_REDIRECT_URI, **data}
    try:
        LoginConfig.model_validate(candidate)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_config_file(data)
    success(f"Set {key} = {value}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        ik-login config reset
        ik-login --force config reset
    """
    from infomaniak_login.config import save_config_file

    if not is_forced(ctx):
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_config_file({})
    success("Configuration reset to defaults.")

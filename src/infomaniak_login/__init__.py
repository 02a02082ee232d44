"""infomaniak_login -- OAuth2 Authorization Code + PKCE login for Infomaniak.

This package drives the client side of an Infomaniak login: it generates
PKCE secrets, builds the authorization URL, interprets the redirect
callback, and exchanges, refreshes, derives and revokes tokens over HTTP.
Showing the login page is left to the caller through
:class:`~infomaniak_login.auth.presenter.AuthorizationPresenter`.

Typical workflow::

    config = LoginConfig(client_id="...", redirect_uri="com.example.app://oauth2redirect")
    session = LoginSession(config)
    result = await session.login(presenter)
    async with TokenClient(config) as client:
        token = await client.get_api_token(result.code, result.verifier)

Modules:
    models: Pydantic models shared across the entire package.
    auth: PKCE generation, authorization URL, redirect handling, sessions.
    client: The asynchronous token endpoint client.
    exceptions: Exception hierarchy with exit-code mapping.
    config: XDG-aware configuration and token file handling for the CLI.
    app: The ``ik-login`` Typer application.
"""

__version__ = "0.1.0"

from infomaniak_login.auth import ConsolePresenter, LoginSession  # noqa: E402
from infomaniak_login.client import TokenClient  # noqa: E402
from infomaniak_login.models import (  # noqa: E402
    AccessType,
    ApiError,
    ApiToken,
    LoginConfig,
    LoginResult,
    PKCEState,
)

__all__ = [
    "AccessType",
    "ApiError",
    "ApiToken",
    "ConsolePresenter",
    "LoginConfig",
    "LoginResult",
    "LoginSession",
    "PKCEState",
    "TokenClient",
    "__version__",
]

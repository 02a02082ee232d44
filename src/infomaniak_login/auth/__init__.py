"""PKCE authorization flow for infomaniak_login.

The pieces of one interactive login, leaf first:

- :mod:`~infomaniak_login.auth.pkce` -- verifier/challenge generation.
- :mod:`~infomaniak_login.auth.authorization` -- ``/authorize`` URL builder.
- :mod:`~infomaniak_login.auth.redirect` -- redirect callback interpretation.
- :mod:`~infomaniak_login.auth.presenter` -- the capability a UI implements
  to show the authorization URL and return the callback.
- :mod:`~infomaniak_login.auth.session` -- :class:`LoginSession`, which ties
  a configuration to the attempt in progress.

Typical usage::

    from infomaniak_login.auth import ConsolePresenter, LoginSession

    session = LoginSession(config)
    result = await session.login(ConsolePresenter())
"""

from infomaniak_login.auth.authorization import build_authorization_url, validate_login_url
from infomaniak_login.auth.pkce import (
    PKCE_METHOD,
    derive_code_challenge,
    generate_code_verifier,
    generate_pkce,
)
from infomaniak_login.auth.presenter import AuthorizationPresenter, ConsolePresenter
from infomaniak_login.auth.redirect import interpret_redirect, is_redirect_callback
from infomaniak_login.auth.session import LoginSession

__all__ = [
    "PKCE_METHOD",
    "AuthorizationPresenter",
    "ConsolePresenter",
    "LoginSession",
    "build_authorization_url",
    "derive_code_challenge",
    "generate_code_verifier",
    "generate_pkce",
    "interpret_redirect",
    "is_redirect_callback",
    "validate_login_url",
]

"""Caller-owned login session.

A :class:`LoginSession` binds one :class:`~infomaniak_login.models.LoginConfig`
to the PKCE state of the authorization attempt currently in progress.
There is no module-level instance: applications that need several
concurrent login contexts create one session per context.

Typical usage::

    session = LoginSession(config)
    result = await session.login(ConsolePresenter())
    async with TokenClient(config) as client:
        token = await client.get_api_token(result.code, result.verifier)
"""

from __future__ import annotations

import logging
from typing import Optional

from infomaniak_login.auth.authorization import build_authorization_url
from infomaniak_login.auth.pkce import generate_pkce
from infomaniak_login.auth.presenter import AuthorizationPresenter
from infomaniak_login.auth.redirect import interpret_redirect
from infomaniak_login.exceptions import LoginStateError
from infomaniak_login.models import LoginConfig, LoginResult, PKCEState

logger = logging.getLogger(__name__)


class LoginSession:
    """Holds the configuration and the single in-flight PKCE state.

    Starting a new attempt replaces the PKCE state of any previous one, so
    a callback belonging to the earlier attempt can no longer be matched
    with its verifier.

    Args:
        config: The client configuration, kept for the session's lifetime.
    """

    def __init__(self, config: LoginConfig) -> None:
        self._config = config
        self._pkce: Optional[PKCEState] = None

    @property
    def config(self) -> LoginConfig:
        return self._config

    @property
    def pkce_state(self) -> Optional[PKCEState]:
        """PKCE state of the attempt in progress, or ``None``."""
        return self._pkce

    @property
    def has_pending_login(self) -> bool:
        return self._pkce is not None

    def begin_login(self, hide_create_account: bool = False) -> str:
        """Start a new authorization attempt and return its authorization URL.

        Raises:
            InvalidURLError: If the configured URLs cannot be composed. No
                attempt is left in progress in that case.
        """
        if self._pkce is not None:
            logger.debug("Replacing the PKCE state of an unfinished login attempt")
        pkce = generate_pkce(self._config.hash_mode_short)
        url = build_authorization_url(
            self._config,
            pkce.code_challenge,
            pkce.code_challenge_method,
            hide_create_account=hide_create_account,
        )
        self._pkce = pkce
        return url

    def complete_login(self, callback_url: str) -> LoginResult:
        """Resolve the attempt in progress from its redirect callback URL.

        The attempt's PKCE state is discarded whether the callback carries
        a code or not.

        Returns:
            The authorization code paired with the attempt's verifier.

        Raises:
            LoginStateError: If no attempt is in progress.
            AccessDeniedError: If the callback carries no code.
        """
        pkce = self._pkce
        if pkce is None:
            raise LoginStateError("No login attempt in progress")
        self._pkce = None
        code = interpret_redirect(callback_url)
        logger.debug("Authorization code received")
        return LoginResult(code=code, verifier=pkce.code_verifier)

    def cancel(self) -> None:
        """Abandon the attempt in progress, if any."""
        self._pkce = None

    async def login(
        self,
        presenter: AuthorizationPresenter,
        hide_create_account: bool = False,
    ) -> LoginResult:
        """Run one complete authorization attempt through *presenter*.

        Resolves exactly once: with a :class:`~infomaniak_login.models.LoginResult`,
        or by raising the presenter's navigation error or
        :class:`~infomaniak_login.exceptions.AccessDeniedError`. An attempt
        replaced by a newer one while its presenter was open raises
        :class:`~infomaniak_login.exceptions.LoginStateError` and leaves the
        newer attempt's state untouched.

        Args:
            presenter: Shows the authorization URL and returns the callback URL.
            hide_create_account: Hide account creation on the login page.
        """
        url = self.begin_login(hide_create_account=hide_create_account)
        pkce = self._pkce
        try:
            callback_url = await presenter.present(url, self._config.redirect_uri)
        except BaseException:
            if self._pkce is pkce:
                self.cancel()
            raise
        # A newer attempt owns the session state; never hand it this callback.
        if self._pkce is not pkce:
            raise LoginStateError("Login attempt superseded")
        return self.complete_login(callback_url)

"""Presentation capability for the interactive part of a login.

The core never shows anything to the user. A :class:`AuthorizationPresenter`
receives the authorization URL, lets the user log in wherever it sees fit
(system browser, embedded webview, a terminal prompt), and hands back the
redirect callback URL.

:class:`ConsolePresenter` is the presenter used by the ``ik-login`` CLI: it
prints the URL and asks the user to paste the URL the browser was
redirected to. It does not launch or control a browser.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

import typer

from infomaniak_login.auth.redirect import is_redirect_callback
from infomaniak_login.exceptions import NavigationCancelledError, NavigationFailedError


class AuthorizationPresenter(ABC):
    """Abstract base class for authorization URL presenters.

    Implementations must resolve exactly once per call: return the
    callback URL, or raise :class:`~infomaniak_login.exceptions.NavigationCancelledError`
    when the user closed the surface, or
    :class:`~infomaniak_login.exceptions.NavigationFailedError` when it
    could not load the login pages.
    """

    @abstractmethod
    async def present(self, authorization_url: str, redirect_uri: str) -> str:
        """Show *authorization_url* and wait for the redirect to *redirect_uri*.

        Args:
            authorization_url: URL built by
                :func:`~infomaniak_login.auth.authorization.build_authorization_url`.
            redirect_uri: The configured redirect URI, used to recognise
                the callback.

        Returns:
            The full callback URL, query string included.
        """
        ...


class ConsolePresenter(AuthorizationPresenter):
    """Print the authorization URL and read the callback URL from the terminal.

    The prompt blocks the event loop while the user pastes the URL.

    Args:
        show: Callable used to display messages (defaults to
            :func:`infomaniak_login.output.info`).
        prompt: Callable returning one line of user input for a given
            prompt text (defaults to :func:`typer.prompt`).
    """

    def __init__(
        self,
        show: Optional[Callable[[str], None]] = None,
        prompt: Optional[Callable[[str], str]] = None,
    ) -> None:
        self._show = show
        self._prompt = prompt

    async def present(self, authorization_url: str, redirect_uri: str) -> str:
        show = self._show
        if show is None:
            from infomaniak_login.output import info

            show = info

        show("Open this URL in a browser and log in:")
        show(authorization_url)
        show(f"Then paste the URL you were redirected to (starts with {redirect_uri}).")

        try:
            # Read on the calling thread so Ctrl-C interrupts the prompt.
            callback_url = self._read_line()
        except (KeyboardInterrupt, EOFError, typer.Abort):
            raise NavigationCancelledError("Login cancelled by user") from None
        except OSError as exc:
            raise NavigationFailedError(f"Cannot read callback URL: {exc}") from exc

        callback_url = callback_url.strip()
        if not callback_url:
            raise NavigationCancelledError("No callback URL entered")
        if not is_redirect_callback(callback_url, redirect_uri):
            raise NavigationCancelledError(
                "Callback URL does not match the redirect URI", url=callback_url
            )
        return callback_url

    def _read_line(self) -> str:
        if self._prompt is not None:
            return self._prompt("Callback URL")
        return typer.prompt("Callback URL", err=True)

"""Tests for LoginSession and the console presenter."""

from __future__ import annotations

import asyncio
import threading
from urllib.parse import parse_qs, urlsplit

import pytest
import typer

from infomaniak_login.auth.pkce import derive_code_challenge
from infomaniak_login.auth.presenter import AuthorizationPresenter, ConsolePresenter
from infomaniak_login.auth.session import LoginSession
from infomaniak_login.exceptions import (
    AccessDeniedError,
    InvalidURLError,
    LoginStateError,
    NavigationCancelledError,
    NavigationFailedError,
)
from infomaniak_login.models import LoginConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakePresenter(AuthorizationPresenter):
    """Presenter returning a fixed callback, or raising a fixed error."""

    def __init__(self, callback_url: str = "", error: Exception | None = None) -> None:
        self.callback_url = callback_url
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def present(self, authorization_url: str, redirect_uri: str) -> str:
        self.calls.append((authorization_url, redirect_uri))
        if self.error is not None:
            raise self.error
        return self.callback_url


class GatedPresenter(AuthorizationPresenter):
    """Presenter whose calls stay open until the test resolves their future."""

    def __init__(self) -> None:
        self.urls: list[str] = []
        self.gates: list[asyncio.Future[str]] = []

    async def present(self, authorization_url: str, redirect_uri: str) -> str:
        gate: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self.urls.append(authorization_url)
        self.gates.append(gate)
        return await gate

    async def wait_for(self, count: int) -> None:
        while len(self.gates) < count:
            await asyncio.sleep(0)


def _challenge_in(url: str) -> str:
    return parse_qs(urlsplit(url).query)["code_challenge"][0]


# ---------------------------------------------------------------------------
# begin / complete
# ---------------------------------------------------------------------------


class TestBeginAndComplete:
    def test_begin_sets_pending_state(self, login_config: LoginConfig) -> None:
        session = LoginSession(login_config)
        assert not session.has_pending_login

        url = session.begin_login()

        assert session.has_pending_login
        assert session.pkce_state is not None
        assert _challenge_in(url) == session.pkce_state.code_challenge

    def test_complete_pairs_code_with_verifier(self, login_config: LoginConfig) -> None:
        session = LoginSession(login_config)
        url = session.begin_login()
        verifier = session.pkce_state.code_verifier

        result = session.complete_login("com.example.app://oauth2redirect?code=the-code")

        assert result.code == "the-code"
        assert result.verifier == verifier
        assert derive_code_challenge(result.verifier) == _challenge_in(url)
        assert not session.has_pending_login

    def test_second_begin_replaces_state(self, login_config: LoginConfig) -> None:
        session = LoginSession(login_config)
        first_url = session.begin_login()
        second_url = session.begin_login()

        assert _challenge_in(first_url) != _challenge_in(second_url)
        result = session.complete_login("app://cb?code=c")
        assert derive_code_challenge(result.verifier) == _challenge_in(second_url)

    def test_complete_without_begin(self, login_config: LoginConfig) -> None:
        with pytest.raises(LoginStateError):
            LoginSession(login_config).complete_login("app://cb?code=c")

    def test_denied_callback_clears_state(self, login_config: LoginConfig) -> None:
        session = LoginSession(login_config)
        session.begin_login()
        with pytest.raises(AccessDeniedError):
            session.complete_login("app://cb?error=access_denied")
        assert not session.has_pending_login

    def test_invalid_url_leaves_no_state(self) -> None:
        config = LoginConfig.model_construct(
            client_id="x", login_url="not-a-url", redirect_uri="app://cb"
        )
        session = LoginSession(config)
        with pytest.raises(InvalidURLError):
            session.begin_login()
        assert not session.has_pending_login

    def test_cancel(self, login_config: LoginConfig) -> None:
        session = LoginSession(login_config)
        session.begin_login()
        session.cancel()
        assert session.pkce_state is None

    def test_sessions_are_independent(self, login_config: LoginConfig) -> None:
        a, b = LoginSession(login_config), LoginSession(login_config)
        a.begin_login()
        assert not b.has_pending_login


# ---------------------------------------------------------------------------
# login() through a presenter
# ---------------------------------------------------------------------------


class TestLogin:
    def test_success(self, login_config: LoginConfig) -> None:
        presenter = FakePresenter("com.example.app://oauth2redirect?code=abc")
        session = LoginSession(login_config)

        result = asyncio.run(session.login(presenter, hide_create_account=True))

        assert result.code == "abc"
        url, redirect_uri = presenter.calls[0]
        assert redirect_uri == login_config.redirect_uri
        assert "hide_create_account=" in url
        assert not session.has_pending_login

    def test_access_denied(self, login_config: LoginConfig) -> None:
        presenter = FakePresenter("com.example.app://oauth2redirect?error=access_denied")
        with pytest.raises(AccessDeniedError):
            asyncio.run(LoginSession(login_config).login(presenter))

    @pytest.mark.parametrize(
        "error",
        [NavigationCancelledError(status_code=404, url="https://x"), NavigationFailedError("boom")],
    )
    def test_navigation_errors_propagate_and_clear_state(
        self, login_config: LoginConfig, error: Exception
    ) -> None:
        session = LoginSession(login_config)
        with pytest.raises(type(error)):
            asyncio.run(session.login(FakePresenter(error=error)))
        assert not session.has_pending_login

    def test_overlapping_attempts_keep_the_newest(self, login_config: LoginConfig) -> None:
        session = LoginSession(login_config)
        presenter = GatedPresenter()

        async def _scenario() -> None:
            first = asyncio.create_task(session.login(presenter))
            await presenter.wait_for(1)
            second = asyncio.create_task(session.login(presenter))
            await presenter.wait_for(2)
            newest = session.pkce_state

            presenter.gates[0].set_result("app://cb?code=FIRST")
            with pytest.raises(LoginStateError, match="superseded"):
                await first
            assert session.pkce_state is newest

            presenter.gates[1].set_result("app://cb?code=SECOND")
            result = await second
            assert result.code == "SECOND"
            assert derive_code_challenge(result.verifier) == _challenge_in(presenter.urls[1])
            assert not session.has_pending_login

        asyncio.run(_scenario())

    def test_superseded_attempt_failure_keeps_newest_state(
        self, login_config: LoginConfig
    ) -> None:
        session = LoginSession(login_config)
        presenter = GatedPresenter()

        async def _scenario() -> None:
            first = asyncio.create_task(session.login(presenter))
            await presenter.wait_for(1)
            second = asyncio.create_task(session.login(presenter))
            await presenter.wait_for(2)
            newest = session.pkce_state

            presenter.gates[0].set_exception(NavigationCancelledError("closed"))
            with pytest.raises(NavigationCancelledError):
                await first
            assert session.pkce_state is newest

            second.cancel()
            with pytest.raises(asyncio.CancelledError):
                await second
            assert not session.has_pending_login

        asyncio.run(_scenario())


# ---------------------------------------------------------------------------
# ConsolePresenter
# ---------------------------------------------------------------------------


class TestConsolePresenter:
    def _present(self, presenter: ConsolePresenter, redirect_uri: str = "app://cb") -> str:
        return asyncio.run(presenter.present("https://login.example.test/authorize?x=1", redirect_uri))

    def test_returns_pasted_callback(self) -> None:
        shown: list[str] = []
        presenter = ConsolePresenter(show=shown.append, prompt=lambda _: "  app://cb?code=1  ")

        assert self._present(presenter) == "app://cb?code=1"
        assert "https://login.example.test/authorize?x=1" in shown

    def test_empty_input_cancels(self) -> None:
        presenter = ConsolePresenter(show=lambda _: None, prompt=lambda _: "")
        with pytest.raises(NavigationCancelledError):
            self._present(presenter)

    def test_foreign_url_cancels(self) -> None:
        presenter = ConsolePresenter(show=lambda _: None, prompt=lambda _: "https://elsewhere/")
        with pytest.raises(NavigationCancelledError) as exc_info:
            self._present(presenter)
        assert exc_info.value.url == "https://elsewhere/"

    def test_abort_cancels(self) -> None:
        def _abort(_: str) -> str:
            raise typer.Abort()

        presenter = ConsolePresenter(show=lambda _: None, prompt=_abort)
        with pytest.raises(NavigationCancelledError):
            self._present(presenter)

    def test_interrupted_prompt_cancels(self) -> None:
        def _interrupt(_: str) -> str:
            raise KeyboardInterrupt

        presenter = ConsolePresenter(show=lambda _: None, prompt=_interrupt)
        with pytest.raises(NavigationCancelledError):
            self._present(presenter)

    def test_prompt_runs_on_calling_thread(self) -> None:
        threads: list[int] = []

        def _record(_: str) -> str:
            threads.append(threading.get_ident())
            return "app://cb?code=1"

        self._present(ConsolePresenter(show=lambda _: None, prompt=_record))
        assert threads == [threading.get_ident()]

    def test_exit_during_prompt_propagates_and_clears_state(
        self, login_config: LoginConfig
    ) -> None:
        def _exit(_: str) -> str:
            raise SystemExit(130)

        session = LoginSession(login_config)
        presenter = ConsolePresenter(show=lambda _: None, prompt=_exit)
        with pytest.raises(SystemExit):
            asyncio.run(session.login(presenter))
        assert not session.has_pending_login

    def test_os_error_fails(self) -> None:
        def _broken(_: str) -> str:
            raise OSError("stdin closed")

        presenter = ConsolePresenter(show=lambda _: None, prompt=_broken)
        with pytest.raises(NavigationFailedError):
            self._present(presenter)

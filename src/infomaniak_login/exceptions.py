"""Exception hierarchy for infomaniak_login.

All exceptions inherit from :class:`LoginError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`infomaniak_login.exit_codes`. Library callers catch the specific
subclass they can act on (restart the PKCE flow on
:class:`AccessDeniedError`, re-issue a refresh on :class:`TransportError`,
...); the CLI entry point in :func:`infomaniak_login.app.main` catches
``LoginError`` and exits with the matching code.

Subclass hierarchy::

    LoginError (exit 1)
    +-- AccessDeniedError          (exit 3)
    +-- NoRefreshTokenError        (exit 2)
    +-- ProviderError              (exit 4)
    +-- DecodeError                (exit 4)
    +-- TransportError             (exit 6)
    +-- NavigationFailedError      (exit 7)
    +-- NavigationCancelledError   (exit 7)
    +-- InvalidAccessTokenError    (exit 2)
    +-- InvalidURLError            (exit 2)
    +-- LoginStateError            (exit 1)
    +-- ConfigError                (exit 2)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from infomaniak_login.exit_codes import (
    EXIT_ACCESS_DENIED,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NAVIGATION_ERROR,
    EXIT_PROVIDER_ERROR,
)

if TYPE_CHECKING:
    from infomaniak_login.models import ApiError


class LoginError(Exception):
    """Base exception for all login and token errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`infomaniak_login.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class AccessDeniedError(LoginError):
    """Raised when the redirect completed without an authorization code.

    The provider redirects without ``code`` when the user cancels or
    declines consent. The OAuth ``error`` / ``error_description`` query
    parameters are kept when the provider sent them.
    """

    exit_code = EXIT_ACCESS_DENIED

    def __init__(
        self,
        message: str = "Access denied",
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ):
        super().__init__(message)
        self.error = error
        self.error_description = error_description


class NoRefreshTokenError(LoginError):
    """Raised when a refresh is attempted on a token without a refresh token.

    Detected locally: no request reaches the token endpoint.
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, message: str = "Token has no refresh token"):
        super().__init__(message)


class ProviderError(LoginError):
    """Raised when the token endpoint answers with a decodable error payload.

    Attributes:
        code: The provider's machine-readable ``error`` value
            (e.g. ``"invalid_grant"``).
        status_code: The HTTP status of the response.
        description: The optional ``error_description``.
        api_error: The decoded :class:`~infomaniak_login.models.ApiError`.
    """

    exit_code = EXIT_PROVIDER_ERROR

    def __init__(self, api_error: ApiError, status_code: int):
        message = f"HTTP {status_code}: {api_error.error}"
        if api_error.error_description:
            message += f" ({api_error.error_description})"
        super().__init__(message)
        self.api_error = api_error
        self.code = api_error.error
        self.description = api_error.error_description
        self.status_code = status_code


class DecodeError(LoginError):
    """Raised when a response body is empty or does not match the expected schema.

    Covers both token bodies on 2xx responses and error bodies on
    non-2xx responses, so an unreadable error payload is never masked as
    a plain HTTP failure.
    """

    exit_code = EXIT_PROVIDER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(LoginError):
    """Raised when no response was received from the token endpoint.

    The underlying :mod:`httpx` exception is available as ``__cause__``.
    After a failed revocation the token must be treated as possibly still
    valid.
    """

    exit_code = EXIT_CONNECTION_ERROR


class NavigationFailedError(LoginError):
    """Reported by a presenter when the browsing surface could not load a page."""

    exit_code = EXIT_NAVIGATION_ERROR


class NavigationCancelledError(LoginError):
    """Reported by a presenter when navigation was stopped before the redirect.

    Attributes:
        status_code: HTTP status of the page that stopped navigation, if any.
        url: The URL that was being loaded, if known.
    """

    exit_code = EXIT_NAVIGATION_ERROR

    def __init__(
        self,
        message: str = "Navigation cancelled",
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class InvalidAccessTokenError(LoginError):
    """Raised when an operation needs an access token and none usable was given."""

    exit_code = EXIT_INVALID_USAGE


class InvalidURLError(LoginError):
    """Raised when the login base URL or the redirect URI cannot be used."""

    exit_code = EXIT_INVALID_USAGE


class LoginStateError(LoginError):
    """Raised when a callback arrives while no login attempt is in progress."""

    exit_code = EXIT_GENERIC_FAILURE


class ConfigError(LoginError):
    """Raised for configuration problems (missing client id, invalid JSON, bad token file)."""

    exit_code = EXIT_INVALID_USAGE

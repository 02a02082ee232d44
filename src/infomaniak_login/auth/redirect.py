"""Redirect callback interpretation.

The provider redirects to the client's ``redirect_uri`` with a ``code``
query parameter when the user approves the login, and without one when
the user cancels or declines. Everything here is pure string handling.
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

from infomaniak_login.exceptions import AccessDeniedError


def interpret_redirect(callback_url: str) -> str:
    """Extract the authorization code from a redirect callback URL.

    Args:
        callback_url: The full URL the provider redirected to.

    Returns:
        The non-empty ``code`` query parameter.

    Raises:
        AccessDeniedError: If the callback has no ``code`` or an empty one.
            Any OAuth ``error`` / ``error_description`` parameters are
            attached to the exception.
    """
    params = parse_qs(urlsplit(callback_url).query, keep_blank_values=True)
    codes = params.get("code", [])
    code = codes[0] if codes else ""
    if code:
        return code

    error = params.get("error", [None])[0]
    description = params.get("error_description", [None])[0]
    message = "Access denied"
    if error:
        message += f": {error}"
        if description:
            message += f" - {description}"
    raise AccessDeniedError(message, error=error or None, error_description=description or None)


def is_redirect_callback(url: str, redirect_uri: str) -> bool:
    """Return ``True`` when *url* is a navigation to the configured redirect URI.

    Custom-scheme redirect URIs (``com.example.app://oauth2redirect``) are
    matched on the scheme alone, the way a webview intercepts them.
    ``http``/``https`` redirect URIs (loopback servers) must also match the
    host, port and path.
    """
    target = urlsplit(url)
    expected = urlsplit(redirect_uri)
    if not expected.scheme or target.scheme.lower() != expected.scheme.lower():
        return False
    if expected.scheme.lower() not in ("http", "https"):
        return True
    return (
        target.netloc.lower() == expected.netloc.lower()
        and (target.path or "/") == (expected.path or "/")
    )

"""Authorization endpoint URL construction.

Builds the ``{login_url}/authorize`` URL that a presenter opens for the
user. The URL carries the PKCE challenge only; the verifier stays in the
:class:`~infomaniak_login.auth.session.LoginSession` until the code
exchange.
"""

from __future__ import annotations

from urllib.parse import urlencode, urlsplit

from infomaniak_login.exceptions import InvalidURLError
from infomaniak_login.models import AccessType, LoginConfig


def validate_login_url(login_url: str) -> str:
    """Return *login_url* without its trailing slash, or raise InvalidURLError."""
    parts = urlsplit(login_url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidURLError(f"Invalid login URL: {login_url!r}")
    if parts.query or parts.fragment:
        raise InvalidURLError(
            f"Login URL cannot carry a query or fragment: {login_url!r}"
        )
    return login_url.rstrip("/")


def build_authorization_url(
    config: LoginConfig,
    code_challenge: str,
    code_challenge_method: str,
    hide_create_account: bool = False,
) -> str:
    """Compose the authorization URL for a PKCE login attempt.

    Args:
        config: Client configuration providing ``login_url``, ``client_id``,
            ``redirect_uri`` and ``access_type``.
        code_challenge: Challenge derived from the attempt's verifier.
        code_challenge_method: Hash method of the challenge (``"S256"``).
        hide_create_account: Append ``hide_create_account`` so the login
            page does not offer account creation.

    Returns:
        The absolute authorization URL.

    Raises:
        InvalidURLError: If ``login_url`` is not an absolute http(s) URL
            or ``redirect_uri`` has no scheme.
    """
    base = validate_login_url(config.login_url)
    if not urlsplit(config.redirect_uri).scheme:
        raise InvalidURLError(f"Invalid redirect URI: {config.redirect_uri!r}")

    params: dict[str, str] = {"response_type": config.response_type.value}
    if config.access_type == AccessType.OFFLINE:
        params["access_type"] = config.access_type.value
    params["client_id"] = config.client_id
    params["redirect_uri"] = config.redirect_uri
    params["code_challenge_method"] = code_challenge_method
    params["code_challenge"] = code_challenge
    if hide_create_account:
        params["hide_create_account"] = ""

    return f"{base}/authorize?{urlencode(params)}"

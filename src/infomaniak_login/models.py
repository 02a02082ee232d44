"""Canonical Pydantic models shared across all infomaniak_login modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration** -- :class:`ResponseType`, :class:`AccessType` and
:class:`LoginConfig`, created once per application and serialised as JSON
in the user's config directory by :mod:`infomaniak_login.config`.

**Authorization attempt** -- :class:`PKCEState` (one per login attempt) and
:class:`LoginResult` (the single success value an attempt resolves to).

**Token endpoint payloads** -- :class:`ApiToken` and :class:`ApiError`,
decoded from the provider's JSON bodies.

All models use Pydantic v2. Value objects are frozen so that callers cannot
mutate a token or a configuration after creation, and secret fields are
excluded from ``repr()``.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import urlsplit

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_LOGIN_URL = "https://login.infomaniak.com/"
"""Production login host. Replace with the preprod host for testing."""


# --- Configuration ---


class ResponseType(str, enum.Enum):
    """OAuth2 ``response_type``. Only the authorization code flow is supported."""

    CODE = "code"


class AccessType(str, enum.Enum):
    """Lifetime of the tokens requested from the provider.

    ``OFFLINE`` asks for an expiring access token together with a refresh
    token. ``NONE`` asks for a non-expiring access token without a refresh
    token; refresh and derive calls then add ``duration=infinite`` so the
    replacement token keeps that property.
    """

    OFFLINE = "offline"
    NONE = "none"


class LoginConfig(BaseModel):
    """Immutable OAuth2 configuration for one client application.

    Example::

        LoginConfig(
            client_id="my-client-id",
            redirect_uri="com.example.app://oauth2redirect",
        )
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(description="Client identifier issued by the provider")
    login_url: str = Field(
        default=DEFAULT_LOGIN_URL,
        description="Base URL of the login service (authorize and token endpoints)",
    )
    redirect_uri: str = Field(description="Redirect URI registered for the client")
    response_type: ResponseType = ResponseType.CODE
    access_type: AccessType = Field(
        default=AccessType.OFFLINE,
        description="offline: refresh-token based auth; none: non-expiring token",
    )
    hash_mode: str = Field(default="SHA-256", description="PKCE hash algorithm")
    hash_mode_short: str = Field(
        default="S256", description="PKCE code_challenge_method value"
    )
    timeout: float = Field(
        default=30.0, gt=0, description="HTTP transport timeout in seconds"
    )

    @field_validator("access_type", mode="before")
    @classmethod
    def _missing_access_type_means_none(cls, value: Any) -> Any:
        if value is None:
            return AccessType.NONE
        return value

    @field_validator("redirect_uri")
    @classmethod
    def _redirect_uri_has_scheme(cls, value: str) -> str:
        if not urlsplit(value).scheme:
            raise ValueError(f"redirect_uri must include a scheme: {value!r}")
        return value

    @property
    def token_url(self) -> str:
        """The ``{login_url}/token`` endpoint."""
        return f"{self.login_url.rstrip('/')}/token"

    @property
    def requests_refresh_token(self) -> bool:
        """Whether this configuration asks for refresh-token based auth."""
        return self.access_type == AccessType.OFFLINE


# --- Authorization attempt ---


class PKCEState(BaseModel):
    """Proof Key for Code Exchange secrets for a single login attempt.

    The challenge is always derived from the verifier of the same attempt.
    The verifier only ever leaves the process in the token exchange request.
    """

    model_config = ConfigDict(frozen=True)

    code_verifier: str = Field(repr=False)
    code_challenge: str
    code_challenge_method: str = "S256"


class LoginResult(BaseModel):
    """Authorization code and matching verifier produced by a completed login."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(repr=False)
    verifier: str = Field(repr=False)


# --- Token endpoint payloads ---


def _truncate_token(token: str) -> str:
    # Prefix and suffix would cover the whole token.
    if len(token) <= 8:
        return "*****"
    return f"{token[:4]}-*****-{token[-4:]}"


class ApiToken(BaseModel):
    """Token issued by the provider's ``/token`` endpoint.

    When the response carries ``expires_in`` but no expiration date, the
    expiration date is computed at parse time as ``now + expires_in``.
    Without ``expires_in`` the token never expires and ``expiration_date``
    is ``None``.

    Both ``expiration_date`` and ``expirationDate`` are accepted on input;
    :meth:`to_json` writes ``expiration_date``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: str = Field(repr=False)
    refresh_token: Optional[str] = Field(default=None, repr=False)
    scope: str
    token_type: str
    user_id: int
    expires_in: Optional[int] = None
    expiration_date: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("expiration_date", "expirationDate"),
    )

    @model_validator(mode="before")
    @classmethod
    def _derive_expiration_date(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        expires_in = data.get("expires_in")
        if expires_in is None:
            data.pop("expiration_date", None)
            data.pop("expirationDate", None)
            return data
        if data.get("expiration_date") is None and data.get("expirationDate") is None:
            try:
                seconds = int(expires_in)
            except (TypeError, ValueError):
                # Left for field validation to report.
                return data
            data["expiration_date"] = datetime.now(timezone.utc) + timedelta(seconds=seconds)
        return data

    @field_validator("expiration_date")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def truncated_access_token(self) -> str:
        """Access token shortened for logs (``abcd-*****-wxyz``)."""
        return _truncate_token(self.access_token)

    @property
    def truncated_refresh_token(self) -> str:
        """Refresh token shortened for logs, or ``""`` when there is none."""
        if self.refresh_token is None:
            return ""
        return _truncate_token(self.refresh_token)

    def is_expired(self, leeway: float = 0.0) -> bool:
        """Return ``True`` when the token expires within *leeway* seconds.

        Non-expiring tokens are never expired.
        """
        if self.expiration_date is None:
            return False
        return datetime.now(timezone.utc) >= self.expiration_date - timedelta(seconds=leeway)

    def to_json(self) -> str:
        """Serialise the token, secrets included, for caller-side storage."""
        return self.model_dump_json(indent=2)


class ApiError(BaseModel):
    """Error payload returned by the token endpoint on a non-2xx response."""

    error: str
    error_description: Optional[str] = None

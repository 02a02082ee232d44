"""Asynchronous client for the login service's ``/token`` endpoint.

This module provides :class:`TokenClient`, which performs the four token
operations over :class:`httpx.AsyncClient`:

1. :meth:`~TokenClient.get_api_token` -- exchange an authorization code
   and its PKCE verifier for a token.
2. :meth:`~TokenClient.refresh_token` -- trade a refresh token for a new
   token.
3. :meth:`~TokenClient.derive_token` -- token exchange with an app or
   device attestation as client assertion.
4. :meth:`~TokenClient.delete_api_token` -- revoke an access token.

No operation retries. A caller that stops awaiting an operation stops
waiting for it, but the request may still have reached the server.

See Also:
    :mod:`infomaniak_login.client.response` for the response
    interpretation shared by all operations.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from infomaniak_login.auth.authorization import validate_login_url
from infomaniak_login.client.response import (
    FORM_CONTENT_TYPE,
    encode_form,
    interpret_error_response,
    interpret_token_response,
    is_successful,
)
from infomaniak_login.exceptions import (
    InvalidAccessTokenError,
    NoRefreshTokenError,
    TransportError,
)
from infomaniak_login.models import ApiToken, LoginConfig

logger = logging.getLogger(__name__)

GRANT_AUTHORIZATION_CODE = "authorization_code"
GRANT_REFRESH_TOKEN = "refresh_token"
GRANT_TOKEN_EXCHANGE = "urn:ietf:params:oauth:grant-type:token-exchange"
SUBJECT_TOKEN_TYPE_ACCESS_TOKEN = "urn:ietf:params:oauth:token-type:access_token"
CLIENT_ASSERTION_TYPE_JWT_BEARER = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


class TokenClient:
    """Token endpoint client bound to one :class:`~infomaniak_login.models.LoginConfig`.

    Can be used directly, in which case every call opens and closes its
    own :class:`httpx.AsyncClient`, or as an async context manager to share
    one connection pool across calls.

    Args:
        config: Client configuration (``login_url``, ``client_id``,
            ``redirect_uri``, ``access_type``, ``timeout``).
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        async with TokenClient(config) as client:
            token = await client.get_api_token(code, verifier)
            token = await client.refresh_token(token)
    """

    def __init__(
        self,
        config: LoginConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> TokenClient:
        self._client = self._new_http_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def token_url(self) -> str:
        return self._config.token_url

    # ------------------------------------------------------------------ #
    # Token operations
    # ------------------------------------------------------------------ #

    async def get_api_token(self, code: str, code_verifier: str) -> ApiToken:
        """Exchange an authorization code for a token.

        Args:
            code: Code returned in the redirect callback.
            code_verifier: Verifier of the attempt that produced *code*. The
                provider rejects the request if it does not match the
                challenge sent in the authorization URL.

        Raises:
            ProviderError: The provider rejected the exchange.
            DecodeError: The response body was empty or malformed.
            TransportError: No response was received.
        """
        fields = {
            "grant_type": GRANT_AUTHORIZATION_CODE,
            "client_id": self._config.client_id,
            "code": code,
            "code_verifier": code_verifier,
            "redirect_uri": self._config.redirect_uri,
        }
        token = await self._request_token(fields)
        logger.info("Obtained token %s for user %s", token.truncated_access_token, token.user_id)
        return token

    async def refresh_token(self, token: ApiToken) -> ApiToken:
        """Obtain a new token with *token*'s refresh token.

        The provider rotates refresh tokens: the returned token replaces
        *token* entirely and the old refresh token is no longer usable.
        Callers must not refresh the same token concurrently.

        Raises:
            NoRefreshTokenError: *token* has no refresh token. Nothing is
                sent in that case.
            ProviderError: The provider rejected the refresh token.
            DecodeError: The response body was empty or malformed.
            TransportError: No response was received.
        """
        if token.refresh_token is None:
            raise NoRefreshTokenError()

        fields = {
            "grant_type": GRANT_REFRESH_TOKEN,
            "client_id": self._config.client_id,
            "refresh_token": token.refresh_token,
        }
        self._add_duration(fields)
        logger.debug("Refreshing token %s", token.truncated_refresh_token)
        new_token = await self._request_token(fields)
        logger.info("Refreshed token for user %s", new_token.user_id)
        return new_token

    async def derive_token(self, token: ApiToken, attestation_token: str) -> ApiToken:
        """Exchange *token* for a new one, asserting the client with an attestation.

        Args:
            token: Token whose access token is the exchange subject.
            attestation_token: App or device attestation (a JWT) sent as
                ``client_assertion``.

        Raises:
            ProviderError: The provider rejected the exchange.
            DecodeError: The response body was empty or malformed.
            TransportError: No response was received.
        """
        fields = {
            "grant_type": GRANT_TOKEN_EXCHANGE,
            "subject_token": token.access_token,
            "subject_token_type": SUBJECT_TOKEN_TYPE_ACCESS_TOKEN,
            "client_id": self._config.client_id,
            "client_assertion_type": CLIENT_ASSERTION_TYPE_JWT_BEARER,
            "client_assertion": attestation_token,
        }
        self._add_duration(fields)
        logger.debug("Deriving token from %s", token.truncated_access_token)
        derived = await self._request_token(fields)
        logger.info("Derived token %s", derived.truncated_access_token)
        return derived

    async def delete_api_token(self, token: ApiToken) -> None:
        """Revoke *token*'s access token.

        Returns silently on a 2xx response.

        Raises:
            InvalidAccessTokenError: *token* has an empty access token.
            ProviderError: The provider refused the revocation.
            DecodeError: The error body was empty or malformed.
            TransportError: No response was received. The token may still
                be valid.
        """
        if not token.access_token:
            raise InvalidAccessTokenError("Cannot revoke a token without an access token")

        response = await self._send(
            "DELETE",
            headers={"Authorization": f"Bearer {token.access_token}"},
        )
        if not is_successful(response):
            interpret_error_response(response)
        logger.info("Revoked token %s", token.truncated_access_token)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _new_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._config.timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    def _add_duration(self, fields: dict[str, str]) -> None:
        """Keep non-expiring tokens non-expiring across refresh and derive."""
        if not self._config.requests_refresh_token:
            fields["duration"] = "infinite"

    async def _request_token(self, fields: dict[str, str]) -> ApiToken:
        response = await self._send(
            "POST",
            headers={"Content-Type": FORM_CONTENT_TYPE},
            content=encode_form(fields),
        )
        return interpret_token_response(response)

    async def _send(
        self,
        method: str,
        headers: dict[str, str],
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        """Send one request to the token endpoint, mapping transport failures.

        Raises:
            InvalidURLError: The configured login URL is unusable. Nothing
                is sent in that case.
        """
        validate_login_url(self._config.login_url)
        try:
            if self._client is not None:
                return await self._client.request(
                    method, self.token_url, headers=headers, content=content
                )
            async with self._new_http_client() as client:
                return await client.request(
                    method, self.token_url, headers=headers, content=content
                )
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, self.token_url, exc)
            raise TransportError(f"{method} {self.token_url} failed: {exc}") from exc

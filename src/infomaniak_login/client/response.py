"""Token endpoint request encoding and response interpretation.

Shared by every :class:`~infomaniak_login.client.token_client.TokenClient`
operation:

* :func:`encode_form` builds ``application/x-www-form-urlencoded`` bodies
  with the strict escaping the login service expects.
* :func:`interpret_token_response` turns an :class:`httpx.Response` into an
  :class:`~infomaniak_login.models.ApiToken` or raises a typed error.
* :func:`interpret_error_response` raises the typed error for a non-2xx
  response (also used by token revocation, whose success has no body).
"""

from __future__ import annotations

from typing import NoReturn
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from infomaniak_login.exceptions import DecodeError, ProviderError
from infomaniak_login.models import ApiError, ApiToken

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Unreserved characters are always kept by quote(); "/" and "?" are legal
# in query values (RFC 3986 section 3.4). Everything else is escaped.
_FORM_SAFE = "/?"


def encode_form(fields: dict[str, str]) -> bytes:
    """Percent-encode *fields* as a form body.

    General delimiters (``:#[]@``) and sub-delimiters (``!$&'()*+,;=``) are
    escaped in keys and values; spaces become ``%20``.
    """
    return "&".join(
        f"{quote(str(key), safe=_FORM_SAFE)}={quote(str(value), safe=_FORM_SAFE)}"
        for key, value in fields.items()
    ).encode("utf-8")


def is_successful(response: httpx.Response) -> bool:
    """Return ``True`` for a status in the 200-299 range."""
    return 200 <= response.status_code <= 299


def interpret_error_response(response: httpx.Response) -> NoReturn:
    """Raise the typed error for an unsuccessful token endpoint response.

    Raises:
        ProviderError: If the body decodes as ``{error, error_description?}``.
        DecodeError: If the body is empty or is not a valid error payload.
    """
    status = response.status_code
    if not response.content:
        raise DecodeError(f"HTTP {status} with an empty response body", status_code=status)
    try:
        api_error = ApiError.model_validate_json(response.content)
    except ValidationError as exc:
        raise DecodeError(
            f"HTTP {status} with an undecodable error body: {exc.error_count()} error(s)",
            status_code=status,
        ) from exc
    raise ProviderError(api_error, status)


def interpret_token_response(response: httpx.Response) -> ApiToken:
    """Decode a token endpoint response.

    A response is successful when its status is 2xx and its body is not
    empty. An empty 2xx body is reported as a :class:`DecodeError` rather
    than being ignored.

    Raises:
        DecodeError: If the body is empty or does not match the token schema.
        ProviderError: For a non-2xx response with a valid error payload.
    """
    if not is_successful(response):
        interpret_error_response(response)
    if not response.content:
        raise DecodeError(
            f"HTTP {response.status_code} with an empty response body",
            status_code=response.status_code,
        )
    try:
        return ApiToken.model_validate_json(response.content)
    except ValidationError as exc:
        raise DecodeError(
            f"Invalid token response: {exc.error_count()} error(s) "
            f"in fields {sorted({str(err['loc'][0]) for err in exc.errors() if err['loc']})}",
            status_code=response.status_code,
        ) from exc

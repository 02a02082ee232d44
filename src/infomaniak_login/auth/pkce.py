"""PKCE (Proof Key for Code Exchange, :rfc:`7636`) secret generation.

:func:`generate_pkce` is called once per login attempt. The challenge is a
pure function of the verifier, so re-deriving it from a persisted verifier
after a restart yields the same value.
"""

from __future__ import annotations

import base64
import hashlib
import secrets

from infomaniak_login.models import PKCEState

PKCE_METHOD = "S256"
"""``code_challenge_method`` for SHA-256 challenges."""

_VERIFIER_BYTES = 32


def _base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=").strip()


def generate_code_verifier() -> str:
    """Generate a high-entropy code verifier (:rfc:`7636` section 4.1).

    32 random bytes from the OS CSPRNG, base64url-encoded without padding,
    giving 43 characters from ``[A-Za-z0-9_-]``. A missing randomness
    source is an environment error and is not caught here.
    """
    return _base64url(secrets.token_bytes(_VERIFIER_BYTES))


def derive_code_challenge(code_verifier: str) -> str:
    """Return the S256 challenge for *code_verifier* (:rfc:`7636` section 4.2)."""
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    return _base64url(digest)


def generate_pkce(method: str = PKCE_METHOD) -> PKCEState:
    """Generate a fresh verifier/challenge pair for one authorization attempt.

    Args:
        method: Value sent as ``code_challenge_method``.

    Returns:
        A new :class:`~infomaniak_login.models.PKCEState`, unrelated to any
        previously generated one.
    """
    verifier = generate_code_verifier()
    return PKCEState(
        code_verifier=verifier,
        code_challenge=derive_code_challenge(verifier),
        code_challenge_method=method,
    )

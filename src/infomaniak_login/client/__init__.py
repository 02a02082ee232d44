"""HTTP client module for infomaniak_login.

Provides :class:`TokenClient`, an asynchronous client for the login
service's ``/token`` endpoint built on :class:`httpx.AsyncClient`.

Example::

    from infomaniak_login.client import TokenClient

    async with TokenClient(config) as client:
        token = await client.get_api_token(code, verifier)
"""

from infomaniak_login.client.token_client import TokenClient

__all__ = ["TokenClient"]

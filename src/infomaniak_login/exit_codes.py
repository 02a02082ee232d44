"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~infomaniak_login.exceptions.LoginError` subclass.
Shell scripts wrapping ``ik-login`` can inspect the exit code to tell a
declined login from a rejected refresh token without parsing stderr.

Example::

    $ ik-login token refresh --token-file token.json
    $ echo $?
    4   # EXIT_PROVIDER_ERROR -- the provider rejected the refresh token
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an invalid configuration."""

EXIT_ACCESS_DENIED = 3
"""The user declined or cancelled the authorization request."""

EXIT_PROVIDER_ERROR = 4
"""The token endpoint rejected the request or answered with an undecodable body."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_NAVIGATION_ERROR = 7
"""The browsing surface failed to reach or validate the redirect."""

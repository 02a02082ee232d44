"""Built-in CLI sub-commands for ik-login.

* :mod:`~infomaniak_login.commands.login` -- run the interactive login and
  print authorization URLs.
* :mod:`~infomaniak_login.commands.token` -- refresh, derive, revoke and
  show saved tokens.
* :mod:`~infomaniak_login.commands.config` -- view and modify the client
  configuration.

Multi-command groups export a :class:`typer.Typer` sub-application; single
commands export a plain callback registered on the root app.
"""

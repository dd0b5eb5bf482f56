"""Built-in CLI sub-commands for specflat.

This package groups the Typer command modules that form the CLI's
command tree:

* :mod:`~specflat.commands.catalog` -- ``info``, ``schemas``, ``schema``,
  ``operations`` and ``tags``, each a read-only query against the
  :class:`~specflat.catalog.SchemaCatalog` of the active spec.
* :mod:`~specflat.commands.config` -- view and modify global settings.

Catalog commands are plain callbacks registered directly on the root app;
``config`` is a :class:`typer.Typer` sub-application.
"""

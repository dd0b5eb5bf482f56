"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to one error category and is referenced by the matching
:class:`~specflat.exceptions.SpecflatError` subclass, so shell wrappers and
CI jobs can tell a broken document from a broken reference graph without
parsing stderr.

Example::

    $ specflat schemas --spec api.yaml
    $ echo $?
    8   # EXIT_RESOLUTION_ERROR -- a $ref could not be resolved
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or without a spec source."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI document could not be loaded, parsed, or validated."""

EXIT_RESOLUTION_ERROR = 8
"""A reference or schema composition could not be resolved."""

"""Exception hierarchy for specflat.

All exceptions inherit from :class:`SpecflatError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specflat.exit_codes`.
The top-level error handler in :func:`specflat.app.main` catches
``SpecflatError`` and exits with the appropriate code.

Subclass hierarchy::

    SpecflatError (exit 1)
    +-- InvalidUsageError                   (exit 2)
    +-- ConfigError                         (exit 1)
    +-- SpecParseError                      (exit 7)
    |   +-- MissingFieldError
    |   +-- UnsupportedOpenAPIVersionError
    +-- ResolutionError                     (exit 8)
        +-- ExternalReferenceNotSupportedError
        +-- ReferenceNotFoundError
        +-- CircularReferenceError
        +-- SchemaCompositionError

The structured subclasses keep their fields (``field``, ``reference``,
``path`` ...) as attributes so callers can report the offending location
without parsing the message.
"""

from __future__ import annotations

from typing import Sequence

from specflat.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_RESOLUTION_ERROR,
    EXIT_SPEC_PARSE_ERROR,
)


class SpecflatError(Exception):
    """Base exception for all specflat errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecflatError):
    """Raised for invalid CLI arguments or a missing spec source."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(SpecflatError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


# --- Document-level errors ---


class SpecParseError(SpecflatError):
    """Raised when the OpenAPI document cannot be loaded, parsed, or validated."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class MissingFieldError(SpecParseError):
    """A required document field is absent or empty."""

    def __init__(self, field: str, path: str):
        super().__init__(f"Missing required field '{field}' at {path}")
        self.field = field
        self.path = path


class UnsupportedOpenAPIVersionError(SpecParseError):
    """The declared ``openapi`` version is not a 3.x version."""

    def __init__(self, version: str, path: str = "$.openapi", hint: str = ""):
        message = f"Unsupported OpenAPI version '{version}' at {path}"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)
        self.version = version
        self.path = path


# --- Resolution errors ---


class ResolutionError(SpecflatError):
    """Base class for reference and composition failures."""

    exit_code = EXIT_RESOLUTION_ERROR


class ExternalReferenceNotSupportedError(ResolutionError):
    """The pointer does not start with the internal ``#/`` prefix."""

    def __init__(self, reference: str, path: str = "$"):
        super().__init__(f"External reference '{reference}' not supported at {path}")
        self.reference = reference
        self.path = path


class ReferenceNotFoundError(ResolutionError):
    """The pointer shape is unsupported or its target does not exist."""

    def __init__(self, reference: str, path: str = "$.components.schemas"):
        super().__init__(f"Reference '{reference}' not found at {path}")
        self.reference = reference
        self.path = path


class CircularReferenceError(ResolutionError):
    """A pointer reappeared within one reference chain."""

    def __init__(self, reference: str, chain: Sequence[str] = ()):
        self.reference = reference
        self.chain = list(chain)
        if self.chain:
            detail = " -> ".join([*self.chain, reference])
        else:
            detail = reference
        super().__init__(f"Circular reference detected: {detail}")


class SchemaCompositionError(ResolutionError):
    """A composition keyword could not be merged (e.g. conflicting types)."""

    def __init__(self, composition_type: str, path: str, reason: str):
        super().__init__(
            f"Schema composition error in {composition_type} at {path}: {reason}"
        )
        self.composition_type = composition_type
        self.path = path
        self.reason = reason

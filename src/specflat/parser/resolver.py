"""Resolve ``$ref`` pointers against a document's components table.

OpenAPI documents use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/schemas/Pet"}``) to name reusable schemas. This
module looks such pointers up in an :class:`~specflat.models.OpenAPIDocument`
and returns the :class:`~specflat.models.SchemaNode` they name.

Only **internal** references (those starting with ``#/``) of the shape
``#/components/schemas/<Name>`` are supported. External file or URL
references raise
:class:`~specflat.exceptions.ExternalReferenceNotSupportedError`; any other
shape, or a name missing from the table, raises
:class:`~specflat.exceptions.ReferenceNotFoundError`.

When a components entry is itself a reference the chain is followed. The
pointers seen so far travel through the recursion as an explicit ``visited``
argument, so a chain like ``A -> B -> A`` raises
:class:`~specflat.exceptions.CircularReferenceError` instead of looping.
Structural recursion (a ``Node`` whose ``children`` items point back at
``Node``) is not a chain and is not touched here: resolution stops at the
first inline schema and nested references are left for the caller.
"""

from __future__ import annotations

import logging
from typing import Optional

from specflat.exceptions import (
    CircularReferenceError,
    ExternalReferenceNotSupportedError,
    ReferenceNotFoundError,
)
from specflat.models import OpenAPIDocument, Reference, SchemaNode

logger = logging.getLogger(__name__)

_INTERNAL_PREFIX = "#/"
_SCHEMAS_PATH = ("components", "schemas")


def _unescape(segment: str) -> str:
    """Undo RFC 6901 JSON Pointer escaping (``~1`` for ``/``, ``~0`` for ``~``)."""
    return segment.replace("~1", "/").replace("~0", "~")


def schema_name(pointer: str) -> str:
    """Return the component name a pointer refers to (its last segment).

    Example::

        >>> schema_name("#/components/schemas/Pet")
        'Pet'
    """
    return _unescape(pointer.rsplit("/", 1)[-1])


class ReferenceResolver:
    """Look up ``#/components/schemas/<Name>`` pointers in one document.

    The resolver holds nothing but the (immutable) document, so a single
    instance can be shared freely; every call starts from a fresh visited set.

    Args:
        document: The document whose components table is searched.
    """

    def __init__(self, document: OpenAPIDocument) -> None:
        self._document = document

    @property
    def document(self) -> OpenAPIDocument:
        return self._document

    def resolve_reference(
        self,
        pointer: str,
        visited: Optional[list[str]] = None,
    ) -> SchemaNode:
        """Resolve *pointer* to the schema it names, following chained references.

        Args:
            pointer: A reference string such as ``"#/components/schemas/Pet"``.
            visited: Pointers already followed in the current chain. ``None``
                on the initial call. Kept as a list so the error can report
                the chain in order.

        Returns:
            The inline :class:`~specflat.models.SchemaNode` at the end of the
            chain. It is the document's own (frozen) node, not a copy.

        Raises:
            ExternalReferenceNotSupportedError: *pointer* does not start with ``#/``.
            ReferenceNotFoundError: Unsupported pointer shape or unknown name.
            CircularReferenceError: *pointer* already appears in *visited*.
        """
        if visited is None:
            visited = []

        if not pointer.startswith(_INTERNAL_PREFIX):
            raise ExternalReferenceNotSupportedError(pointer, _chain_path(visited))

        if pointer in visited:
            raise CircularReferenceError(pointer, visited)

        name = self._component_name(pointer)
        entry = self._document.get_schema(name)
        if entry is None:
            raise ReferenceNotFoundError(pointer)

        logger.debug("Resolved %s (chain depth %d)", pointer, len(visited) + 1)
        if isinstance(entry, Reference):
            return self.resolve_reference(entry.ref, [*visited, pointer])
        return entry

    def _component_name(self, pointer: str) -> str:
        """Split *pointer* and return the schema name, or raise if the shape is wrong."""
        segments = [_unescape(s) for s in pointer[len(_INTERNAL_PREFIX):].split("/")]
        if len(segments) != 3 or tuple(segments[:2]) != _SCHEMAS_PATH or not segments[2]:
            raise ReferenceNotFoundError(pointer, "$")
        return segments[2]


def _chain_path(visited: list[str]) -> str:
    """Describe where an external pointer was met, for error messages."""
    if not visited:
        return "$"
    return visited[-1]

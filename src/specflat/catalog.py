"""Query surface over one OpenAPI document for code emitters.

:class:`SchemaCatalog` bundles a :class:`~specflat.parser.resolver.ReferenceResolver`
and a :class:`~specflat.parser.composition.CompositionResolver` for a single
:class:`~specflat.models.OpenAPIDocument` and answers the questions an
emitter asks:

* every named schema, fully resolved, in declaration order,
* every operation grouped by tag,
* every tag name.

The catalog does no recovery of its own. A failure while resolving one
schema aborts :meth:`SchemaCatalog.get_all_schemas` as a whole, so callers
never see a partial list.
"""

from __future__ import annotations

import logging

from specflat.exceptions import ReferenceNotFoundError
from specflat.models import (
    HTTPMethod,
    OpenAPIDocument,
    Operation,
    ResolvedSchema,
    SchemaNode,
    SchemaOrReference,
)
from specflat.parser.composition import CompositionResolver
from specflat.parser.resolver import ReferenceResolver

logger = logging.getLogger(__name__)

DEFAULT_TAG = "Default"
"""Tag under which operations without any declared tag are filed."""

SCHEMA_POINTER_PREFIX = "#/components/schemas/"


class SchemaCatalog:
    """Resolved schemas, operations, and tags of one document.

    Example::

        document = load_document("petstore.yaml")
        catalog = SchemaCatalog(document)
        for name, schema in catalog.get_all_schemas():
            emit_model(name, schema)

    Args:
        document: The document to query.
    """

    def __init__(self, document: OpenAPIDocument) -> None:
        self._document = document
        self._references = ReferenceResolver(document)
        self._compositions = CompositionResolver(document, self._references)

    @property
    def document(self) -> OpenAPIDocument:
        return self._document

    def resolve_reference(self, pointer: str) -> SchemaNode:
        """Resolve a ``#/components/schemas/<Name>`` pointer. See :class:`ReferenceResolver`."""
        return self._references.resolve_reference(pointer)

    def resolve_schema(self, schema_or_ref: SchemaOrReference) -> ResolvedSchema:
        """Resolve composition on a schema or reference. See :class:`CompositionResolver`."""
        return self._compositions.resolve_schema(schema_or_ref)

    def get_schema(self, name: str) -> ResolvedSchema:
        """Resolve the component schema named *name*.

        Raises:
            ReferenceNotFoundError: No schema of that name is declared.
        """
        entry = self._document.get_schema(name)
        if entry is None:
            raise ReferenceNotFoundError(SCHEMA_POINTER_PREFIX + name)
        return self._compositions.resolve_schema(entry, SCHEMA_POINTER_PREFIX + name)

    def get_all_schemas(self) -> list[tuple[str, ResolvedSchema]]:
        """Resolve every component schema, in declaration order.

        Returns:
            ``(name, resolved_schema)`` pairs. Empty when the document has no
            components table.

        Raises:
            ResolutionError: The first failure met, unchanged.
        """
        components = self._document.components
        if components is None:
            return []

        schemas: list[tuple[str, ResolvedSchema]] = []
        for name, entry in components.schemas.items():
            resolved = self._compositions.resolve_schema(
                entry, SCHEMA_POINTER_PREFIX + name
            )
            schemas.append((name, resolved))
        logger.debug("Resolved %d component schemas", len(schemas))
        return schemas

    def get_operations_by_tag(self) -> dict[str, list[tuple[str, HTTPMethod, Operation]]]:
        """Group every operation under each of its tags.

        Operations without tags are filed under :data:`DEFAULT_TAG`; an
        operation with several tags appears once under each. Within a tag,
        entries follow path declaration order, then :class:`HTTPMethod` order.

        Returns:
            A mapping of tag name to ``(path, method, operation)`` entries.
        """
        grouped: dict[str, list[tuple[str, HTTPMethod, Operation]]] = {}
        for path, path_item in self._document.paths.items():
            for method, operation in path_item.operations():
                for tag in operation.tags or [DEFAULT_TAG]:
                    grouped.setdefault(tag, []).append((path, method, operation))
        return grouped

    def get_all_tags(self) -> list[str]:
        """Return declared and used tag names, deduplicated and sorted.

        :data:`DEFAULT_TAG` is not included unless a document declares or
        uses it explicitly.
        """
        tags = {tag.name for tag in self._document.tags}
        for path_item in self._document.paths.values():
            for _, operation in path_item.operations():
                tags.update(operation.tags)
        return sorted(tags)

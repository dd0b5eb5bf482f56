"""OpenAPI document parser -- load documents, resolve ``$ref`` pointers and composition.

This sub-package turns a raw OpenAPI 3.x document (JSON or YAML, local file
or remote URL) into a typed :class:`~specflat.models.OpenAPIDocument` and
resolves its schemas into composition-free
:class:`~specflat.models.ResolvedSchema` values.

Typical usage::

    from specflat.parser import CompositionResolver, load_document

    document = load_document("https://petstore3.swagger.io/api/v3/openapi.json")
    resolver = CompositionResolver(document)
    pet = resolver.resolve_schema(document.get_schema("Pet"))

Sub-modules:

* :mod:`~specflat.parser.loader` -- I/O layer (URL, file, stdin), format
  detection, version and info validation, document construction.
* :mod:`~specflat.parser.resolver` -- ``#/components/schemas`` pointer lookup
  with chained-reference cycle detection.
* :mod:`~specflat.parser.composition` -- ``allOf``/``oneOf``/``anyOf``
  merge algorithms.
"""

from specflat.parser.composition import CompositionResolver
from specflat.parser.loader import (
    build_document,
    load_document,
    load_spec,
    validate_openapi_version,
)
from specflat.parser.resolver import ReferenceResolver, schema_name

__all__ = [
    "CompositionResolver",
    "ReferenceResolver",
    "build_document",
    "load_document",
    "load_spec",
    "schema_name",
    "validate_openapi_version",
]

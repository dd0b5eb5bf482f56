"""specflat -- Resolve OpenAPI 3.x schemas into composition-free form.

This package loads an OpenAPI document, follows ``#/components/schemas``
references with cycle detection, and normalizes ``allOf``, ``oneOf`` and
``anyOf`` into a single resolved schema plus variant metadata, ready for a
code emitter.

Typical usage::

    from specflat import SchemaCatalog, load_document

    catalog = SchemaCatalog(load_document("openapi.yaml"))
    for name, schema in catalog.get_all_schemas():
        print(name, list(schema.properties))

Modules:
    app: Typer application and CLI entry point.
    catalog: Query surface (schemas, operations by tag, tags).
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

from specflat.catalog import SchemaCatalog  # noqa: E402
from specflat.parser import (  # noqa: E402
    CompositionResolver,
    ReferenceResolver,
    load_document,
)

__all__ = [
    "CompositionResolver",
    "ReferenceResolver",
    "SchemaCatalog",
    "__version__",
    "load_document",
]

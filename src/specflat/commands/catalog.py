"""Catalog commands -- query the resolved contents of a spec.

Every command here loads the active spec (``--spec``, ``SPECFLAT_SPEC``,
``./specflat.json`` or the global default, in that order), builds a
:class:`~specflat.catalog.SchemaCatalog` over it and prints one view of the
result. Loading or resolution errors are reported on stderr and the command
exits with the error's own exit code, before anything is written to stdout.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

import typer

from specflat.catalog import SchemaCatalog
from specflat.exceptions import InvalidUsageError, SpecflatError
from specflat.models import ResolvedSchema
from specflat.output import debug, error, format_response, info, print_table

_MAX_LISTED_PROPERTIES = 5


def _load_catalog(ctx: typer.Context) -> SchemaCatalog:
    """Load the spec named in ``ctx.obj`` and wrap it in a catalog.

    Raises:
        typer.Exit: With code 2 when no spec source is configured, or with
            the exit code of the :class:`SpecflatError` raised while loading.
    """
    from specflat.parser import load_document

    source = ctx.obj.get("spec") if ctx.obj else None
    if not source:
        error("No spec given. Pass --spec, set SPECFLAT_SPEC, or run: specflat config set-spec <source>")
        raise typer.Exit(code=InvalidUsageError.exit_code)

    debug(f"Loading spec from {source}")
    with _exit_on_error():
        return SchemaCatalog(load_document(source))


@contextmanager
def _exit_on_error() -> Iterator[None]:
    """Report a :class:`SpecflatError` and exit with its code."""
    try:
        yield
    except SpecflatError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _summarize_properties(schema: ResolvedSchema) -> str:
    names = list(schema.properties)
    text = ", ".join(names[:_MAX_LISTED_PROPERTIES])
    if len(names) > _MAX_LISTED_PROPERTIES:
        text += "..."
    return text or "-"


def _dump_schema(schema: ResolvedSchema) -> dict[str, Any]:
    """Serialise a resolved schema with OpenAPI key names and no empty facets."""
    return schema.model_dump(
        mode="json",
        by_alias=True,
        exclude_defaults=True,
        serialize_as_any=True,
    )


def info_command(ctx: typer.Context) -> None:
    """Show API info (title, version, OpenAPI version, counts).

    Example::

        specflat --spec petstore.yaml info
    """
    catalog = _load_catalog(ctx)
    document = catalog.document

    operation_count = sum(
        1 for item in document.paths.values() for _ in item.operations()
    )
    data: dict[str, Any] = {
        "title": document.info.title,
        "version": document.info.version,
        "openapi_version": document.openapi,
        "description": document.info.description or "-",
        "servers": [server.url for server in document.servers],
        "paths": len(document.paths),
        "operations": operation_count,
        "schemas": len(document.schema_names()),
        "tags": len(catalog.get_all_tags()),
    }
    if document.info.license is not None:
        data["license"] = document.info.license.name

    format_response(data)


def schemas_command(ctx: typer.Context) -> None:
    """List every component schema, fully resolved.

    Shows a table with each schema's resolved type, the composition keyword
    it was built from, its variant names and up to five property names.
    Resolution of the whole table fails on the first broken schema.

    Example::

        specflat schemas
        specflat --json schemas
    """
    catalog = _load_catalog(ctx)
    with _exit_on_error():
        schemas = catalog.get_all_schemas()

    if not schemas:
        info("No schemas defined in this spec.")
        return

    headers = ["Schema", "Type", "Composition", "Variants", "Properties"]
    rows: list[list[str]] = []
    for name, schema in schemas:
        rows.append([
            name,
            schema.type or "-",
            schema.composition or "-",
            ", ".join(v.name for v in schema.variants) or "-",
            _summarize_properties(schema),
        ])

    print_table(headers, rows, title=f"Schemas ({len(rows)})")


def schema_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Component schema name, e.g. 'Pet'."),
) -> None:
    """Print one component schema, fully resolved, as JSON.

    Keys use their OpenAPI spelling (``allOf``, ``readOnly``, ``$ref``);
    unset facets are omitted.

    Example::

        specflat schema Pet
        specflat -o pet.json schema Pet
    """
    catalog = _load_catalog(ctx)
    with _exit_on_error():
        schema = catalog.get_schema(name)
    format_response(_dump_schema(schema))


def _operation_rows(
    grouped: dict[str, list[Any]], tags: list[str]
) -> Iterator[list[str]]:
    for tag in tags:
        for path, method, operation in grouped[tag]:
            yield [
                tag,
                method.value.upper(),
                path,
                operation.operation_id or "-",
                operation.summary or "-",
            ]


def operations_command(
    ctx: typer.Context,
    tag: Optional[str] = typer.Option(
        None, "--tag", "-t", help="Only list operations filed under this tag."
    ),
) -> None:
    """List operations grouped by tag.

    Untagged operations are listed under ``Default``; an operation with
    several tags is listed once per tag.

    Example::

        specflat operations
        specflat operations --tag pets
    """
    catalog = _load_catalog(ctx)
    grouped = catalog.get_operations_by_tag()

    if tag is not None:
        if tag not in grouped:
            error(f"No operations tagged '{tag}'. Known tags: {', '.join(sorted(grouped)) or '-'}")
            raise typer.Exit(code=InvalidUsageError.exit_code)
        tags = [tag]
    else:
        tags = sorted(grouped)

    if not tags:
        info("No operations defined in this spec.")
        return

    headers = ["Tag", "Method", "Path", "Operation ID", "Summary"]
    rows = list(_operation_rows(grouped, tags))
    print_table(headers, rows, title=f"Operations ({len(rows)})")


def tags_command(ctx: typer.Context) -> None:
    """List every declared or used tag, sorted.

    Example::

        specflat tags
    """
    catalog = _load_catalog(ctx)
    tags = catalog.get_all_tags()
    if not tags:
        info("No tags defined in this spec.")
        return
    format_response(tags)

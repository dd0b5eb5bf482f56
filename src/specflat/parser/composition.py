"""Normalize ``allOf`` / ``oneOf`` / ``anyOf`` into a single resolved schema.

The single public entry point is
:meth:`CompositionResolver.resolve_schema`, which turns any
:data:`~specflat.models.SchemaOrReference` into a
:class:`~specflat.models.ResolvedSchema`:

* **No composition keyword** -- an inline schema is deep-copied as-is; a
  bare reference is resolved one hop (following chained references) and the
  target is re-checked for composition.
* **allOf** -- inheritance by composition. Member properties are merged in
  list order (later members win), required names are appended first-seen,
  and ``title``/``description``/``example`` fall back to the first member
  that has one.
* **oneOf** -- discriminated union. Members become ``variants`` named by
  their ``title`` or ``Variant<k>``; the discriminator property, if any, is
  injected as a required string.
* **anyOf** -- structural union. Members become ``variants`` named by their
  ``title`` or ``Option<k>``; the result's properties and required names are
  the union over all variants.

Keywords are honored in the priority order ``allOf`` > ``oneOf`` >
``anyOf``. A schema carrying more than one keyword only gets the first, the
rest are dropped and a warning is logged.

References reached through composition members are tracked per call, so
``A: allOf[B]`` with ``B: allOf[A]`` raises
:class:`~specflat.exceptions.CircularReferenceError`.

Nothing is cached: each call builds a fresh result from the frozen
document, so calls may run concurrently.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Optional

from specflat.exceptions import CircularReferenceError, SchemaCompositionError
from specflat.models import (
    OpenAPIDocument,
    Reference,
    ResolvedSchema,
    SchemaNode,
    SchemaOrReference,
    Variant,
)
from specflat.parser.resolver import ReferenceResolver

logger = logging.getLogger(__name__)

# Types that may meet in one allOf, mapped to the narrower one that wins.
_COMPATIBLE_TYPES: dict[frozenset[str], str] = {
    frozenset({"integer", "number"}): "integer",
}


def _fields(schema: SchemaNode) -> dict[str, Any]:
    """Deep-copy every :class:`SchemaNode` field of *schema* into a dict."""
    return {
        name: copy.deepcopy(getattr(schema, name))
        for name in SchemaNode.model_fields
    }


def _append_unique(target: list[str], names: list[str]) -> None:
    for name in names:
        if name not in target:
            target.append(name)


class CompositionResolver:
    """Resolve schemas of one document into composition-free form.

    Args:
        document: The document the schemas belong to.
        references: Reference resolver to use. A new one is created for
            *document* when omitted.
    """

    def __init__(
        self,
        document: OpenAPIDocument,
        references: Optional[ReferenceResolver] = None,
    ) -> None:
        self._document = document
        self._references = references or ReferenceResolver(document)

    def resolve_schema(
        self,
        schema_or_ref: SchemaOrReference,
        path: str = "$",
    ) -> ResolvedSchema:
        """Resolve *schema_or_ref* into a :class:`~specflat.models.ResolvedSchema`.

        Args:
            schema_or_ref: An inline schema or a reference.
            path: Location of the schema in the document, used in error
                messages (e.g. ``"#/components/schemas/Pet"``).

        Returns:
            A new resolved schema with no composition keyword at its own level.

        Raises:
            ResolutionError: Any reference or composition failure, unchanged.
        """
        return self._resolve(schema_or_ref, path, [])

    def _resolve(
        self,
        schema_or_ref: SchemaOrReference,
        path: str,
        chain: list[str],
    ) -> ResolvedSchema:
        if isinstance(schema_or_ref, Reference):
            target, chain = self._follow(schema_or_ref.ref, chain)
            return self._dispatch(target, schema_or_ref.ref, chain)
        return self._dispatch(schema_or_ref, path, chain)

    def _follow(self, pointer: str, chain: list[str]) -> tuple[SchemaNode, list[str]]:
        """Resolve *pointer* met while expanding a composition.

        *chain* holds the pointers whose compositions are being expanded
        above this one, so ``A: allOf[B]`` with ``B: allOf[A]`` fails
        instead of recursing without end.
        """
        if pointer in chain:
            raise CircularReferenceError(pointer, chain)
        return self._references.resolve_reference(pointer), [*chain, pointer]

    def _dispatch(self, schema: SchemaNode, path: str, chain: list[str]) -> ResolvedSchema:
        keywords = schema.composition_keywords()
        if not keywords:
            return ResolvedSchema(**_fields(schema))

        if len(keywords) > 1:
            logger.warning(
                "Schema at %s declares %s; only %s is applied",
                path,
                " and ".join(keywords),
                keywords[0],
            )

        handlers: dict[str, Callable[[SchemaNode, str, list[str]], ResolvedSchema]] = {
            "allOf": self._merge_all_of,
            "oneOf": self._merge_one_of,
            "anyOf": self._merge_any_of,
        }
        logger.debug("Resolving %s at %s", keywords[0], path)
        return handlers[keywords[0]](schema, path, chain)

    # ------------------------------------------------------------------ #
    # allOf
    # ------------------------------------------------------------------ #

    def _merge_all_of(
        self,
        schema: SchemaNode,
        path: str,
        chain: list[str],
        nested: bool = False,
    ) -> ResolvedSchema:
        fields = _fields(schema)
        properties: dict[str, Any] = {}
        required: list[str] = []
        merged_type: Optional[str] = schema.type

        for index, member in enumerate(schema.all_of):
            member_path = f"{path}/allOf/{index}"
            resolved = self._resolve_all_of_member(member, member_path, chain)

            properties.update(copy.deepcopy(resolved.properties))
            _append_unique(required, resolved.required)
            for key in ("title", "description", "example"):
                if fields[key] is None and getattr(resolved, key) is not None:
                    fields[key] = copy.deepcopy(getattr(resolved, key))
            merged_type = _merge_type(merged_type, resolved.type, member_path)

        # A nested merge keeps an undeclared type unset so it cannot clash
        # with a sibling member's declared type.
        if not nested:
            merged_type = merged_type or "object"

        fields.update(
            type=merged_type,
            properties=properties,
            required=required,
            all_of=[],
            one_of=[],
            any_of=[],
        )
        return ResolvedSchema(**fields, composition="allOf")

    def _resolve_all_of_member(
        self,
        member: SchemaOrReference,
        path: str,
        chain: list[str],
    ) -> SchemaNode:
        """Resolve an allOf member through references and nested allOf only."""
        if isinstance(member, Reference):
            path = member.ref
            member, chain = self._follow(member.ref, chain)
        if member.all_of:
            return self._merge_all_of(member, path, chain, nested=True)
        return member

    # ------------------------------------------------------------------ #
    # oneOf / anyOf
    # ------------------------------------------------------------------ #

    def _merge_one_of(self, schema: SchemaNode, path: str, chain: list[str]) -> ResolvedSchema:
        fields = _fields(schema)
        variants = self._collect_variants(schema.one_of, f"{path}/oneOf", chain, "Variant")

        if schema.discriminator is not None:
            name = schema.discriminator.property_name
            if name not in fields["properties"]:
                fields["properties"][name] = SchemaNode(type="string")
            _append_unique(fields["required"], [name])

        fields.update(type=schema.type or "object", all_of=[], one_of=[], any_of=[])
        return ResolvedSchema(**fields, variants=variants, composition="oneOf")

    def _merge_any_of(self, schema: SchemaNode, path: str, chain: list[str]) -> ResolvedSchema:
        fields = _fields(schema)
        variants = self._collect_variants(schema.any_of, f"{path}/anyOf", chain, "Option")

        # Only the variants contribute; the combining schema's own
        # properties and required names are replaced.
        properties: dict[str, Any] = {}
        required: list[str] = []
        for variant in variants:
            properties.update(copy.deepcopy(variant.schema_.properties))
            _append_unique(required, variant.schema_.required)

        fields.update(
            type=schema.type or "object",
            properties=properties,
            required=required,
            all_of=[],
            one_of=[],
            any_of=[],
        )
        return ResolvedSchema(**fields, variants=variants, composition="anyOf")

    def _collect_variants(
        self,
        members: list[SchemaOrReference],
        path: str,
        chain: list[str],
        fallback_prefix: str,
    ) -> list[Variant]:
        variants: list[Variant] = []
        for position, member in enumerate(members, start=1):
            resolved = self._resolve(member, f"{path}/{position - 1}", chain)
            name = resolved.title or f"{fallback_prefix}{position}"
            variants.append(Variant(name=name, schema=resolved))
        return variants


def _merge_type(current: Optional[str], incoming: Optional[str], path: str) -> Optional[str]:
    """Combine the primitive types of two allOf participants.

    Raises:
        SchemaCompositionError: If the two types cannot describe the same value.
    """
    if incoming is None or incoming == current:
        return current
    if current is None:
        return incoming
    narrowed = _COMPATIBLE_TYPES.get(frozenset({current, incoming}))
    if narrowed is not None:
        return narrowed
    raise SchemaCompositionError(
        "allOf", path, f"conflicting types '{current}' and '{incoming}'"
    )

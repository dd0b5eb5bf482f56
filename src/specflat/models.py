"""Canonical Pydantic models shared across all specflat modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`OutputConfig` and :class:`GlobalConfig`.

**Document models** -- the typed, read-only form of an OpenAPI 3.x document
produced by :func:`~specflat.parser.loader.build_document`:
    :class:`OpenAPIDocument`, :class:`APIInfo`, :class:`PathItem`,
    :class:`Operation`, :class:`Components`, :class:`SchemaNode`,
    :class:`Reference` and friends.

**Resolution output models** -- produced by the composition resolver and
consumed by code emitters:
    :class:`Variant` and :class:`ResolvedSchema`.

Document models are frozen. OpenAPI's camelCase keys map onto snake_case
attributes through aliases, and ``populate_by_name`` lets code (and tests)
build nodes with either spelling.

Every place the OpenAPI format allows ``{"$ref": ...}`` instead of an inline
object is typed as a two-member discriminated union. The discriminator looks
at the raw value's shape (a ``$ref`` key means :class:`Reference`), so the
choice is made once at parse time rather than guessed during resolution.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Iterator, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    ValidationInfo,
    field_validator,
    model_validator,
)


_DOCUMENT_CONFIG = ConfigDict(frozen=True, populate_by_name=True)

COMPOSITION_KEYWORDS: tuple[str, ...] = ("allOf", "oneOf", "anyOf")
"""Composition keywords in dispatch priority order."""


# --- Configuration models ---


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/specflat/config.json``.

    Fields here have the lowest precedence and can be overridden by the
    project config, environment variables, or CLI flags. See
    :func:`~specflat.config.resolve_config` for the full precedence chain.
    """

    default_spec: Optional[str] = Field(
        default=None, description="URL or file path of the spec used when none is given"
    )
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- References ---


class Reference(BaseModel):
    """A ``{"$ref": "#/components/schemas/Name"}`` pointer object."""

    model_config = _DOCUMENT_CONFIG

    ref: str = Field(alias="$ref")


def _reference_tag(value: Any) -> str:
    """Pick the union member for a ``$ref``-or-object value by its shape."""
    if isinstance(value, Reference):
        return "reference"
    if isinstance(value, dict) and "$ref" in value:
        return "reference"
    return "object"


def _or_reference(model: Any) -> Any:
    """Build the ``Reference | model`` discriminated union type."""
    return Annotated[
        Union[
            Annotated[Reference, Tag("reference")],
            Annotated[model, Tag("object")],
        ],
        Discriminator(_reference_tag),
    ]


# --- Schemas ---


class SchemaDiscriminator(BaseModel):
    """The ``discriminator`` object of a ``oneOf`` schema."""

    model_config = _DOCUMENT_CONFIG

    property_name: str = Field(alias="propertyName")
    mapping: dict[str, str] = Field(default_factory=dict)


class SchemaNode(BaseModel):
    """A JSON Schema node as used by OpenAPI 3.x.

    Each node owns its inline sub-schemas. Recursive types are expressed only
    through :class:`Reference` values naming an entry in the components
    table, so the node tree itself never contains a back-edge.
    """

    model_config = _DOCUMENT_CONFIG

    type: Optional[str] = None
    format: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    default: Any = None
    example: Any = None
    enum: Optional[list[Any]] = None
    const: Any = None

    # Numeric facets
    multiple_of: Optional[Union[int, float]] = Field(default=None, alias="multipleOf")
    minimum: Optional[Union[int, float]] = None
    maximum: Optional[Union[int, float]] = None
    exclusive_minimum: Optional[Union[bool, int, float]] = Field(
        default=None, alias="exclusiveMinimum"
    )
    exclusive_maximum: Optional[Union[bool, int, float]] = Field(
        default=None, alias="exclusiveMaximum"
    )

    # String facets
    min_length: Optional[int] = Field(default=None, alias="minLength")
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    pattern: Optional[str] = None

    # Array facets
    items: Optional[SchemaOrReference] = None
    min_items: Optional[int] = Field(default=None, alias="minItems")
    max_items: Optional[int] = Field(default=None, alias="maxItems")
    unique_items: Optional[bool] = Field(default=None, alias="uniqueItems")

    # Object facets
    properties: dict[str, SchemaOrReference] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    additional_properties: Optional[Union[bool, SchemaOrReference]] = Field(
        default=None, alias="additionalProperties"
    )
    min_properties: Optional[int] = Field(default=None, alias="minProperties")
    max_properties: Optional[int] = Field(default=None, alias="maxProperties")

    # Composition
    all_of: list[SchemaOrReference] = Field(default_factory=list, alias="allOf")
    one_of: list[SchemaOrReference] = Field(default_factory=list, alias="oneOf")
    any_of: list[SchemaOrReference] = Field(default_factory=list, alias="anyOf")
    discriminator: Optional[SchemaDiscriminator] = None

    # Annotations
    nullable: Optional[bool] = None
    read_only: Optional[bool] = Field(default=None, alias="readOnly")
    write_only: Optional[bool] = Field(default=None, alias="writeOnly")
    deprecated: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_type_array(cls, data: Any) -> Any:
        """Collapse OpenAPI 3.1 type arrays (``["string", "null"]``).

        The first non-null entry becomes ``type`` and a ``"null"`` entry turns
        into ``nullable=True``.
        """
        if not isinstance(data, dict) or not isinstance(data.get("type"), list):
            return data
        types = data["type"]
        non_null = [t for t in types if t != "null"]
        data = dict(data)
        data["type"] = non_null[0] if non_null else None
        if len(non_null) != len(types):
            data["nullable"] = True
        return data

    @field_validator("required")
    @classmethod
    def _reject_duplicate_required(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        duplicates: list[str] = []
        for name in value:
            if name in seen and name not in duplicates:
                duplicates.append(name)
            seen.add(name)
        if duplicates:
            raise ValueError(
                f"duplicate names in 'required': {', '.join(duplicates)}"
            )
        return value

    def composition_keywords(self) -> list[str]:
        """Return the composition keywords present on this node, in priority order."""
        present = {
            "allOf": bool(self.all_of),
            "oneOf": bool(self.one_of),
            "anyOf": bool(self.any_of),
        }
        return [keyword for keyword in COMPOSITION_KEYWORDS if present[keyword]]


SchemaOrReference = _or_reference(SchemaNode)


class Variant(BaseModel):
    """One named member of a ``oneOf``/``anyOf`` union."""

    model_config = _DOCUMENT_CONFIG

    name: str
    schema_: SchemaNode = Field(alias="schema")


class ResolvedSchema(SchemaNode):
    """A schema with no ``allOf``/``oneOf``/``anyOf`` left at its own level.

    ``variants`` is only populated for ``oneOf`` and ``anyOf`` sources and
    keeps declaration order. ``composition`` records which keyword produced
    the schema, or ``None`` for a pass-through.
    """

    variants: list[Variant] = Field(default_factory=list)
    composition: Optional[Literal["allOf", "oneOf", "anyOf"]] = None

    @model_validator(mode="after")
    def _check_composition_free(self) -> ResolvedSchema:
        leftover = self.composition_keywords()
        if leftover:
            raise ValueError(
                f"resolved schema still carries {', '.join(leftover)}"
            )
        return self


# --- Operations ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects."""

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"
    PATCH = "patch"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"


class Parameter(BaseModel):
    """An OpenAPI *Parameter Object*."""

    model_config = _DOCUMENT_CONFIG

    name: str
    location: str = Field(alias="in")
    description: Optional[str] = None
    required: bool = False
    deprecated: bool = False
    schema_: Optional[SchemaOrReference] = Field(default=None, alias="schema")
    example: Any = None


ParameterOrReference = _or_reference(Parameter)


class MediaType(BaseModel):
    """One ``content`` entry of a request body or response."""

    model_config = _DOCUMENT_CONFIG

    schema_: Optional[SchemaOrReference] = Field(default=None, alias="schema")
    example: Any = None


class RequestBody(BaseModel):
    """An OpenAPI *Request Body Object*."""

    model_config = _DOCUMENT_CONFIG

    description: Optional[str] = None
    content: dict[str, MediaType] = Field(default_factory=dict)
    required: bool = False


RequestBodyOrReference = _or_reference(RequestBody)


class Response(BaseModel):
    """An OpenAPI *Response Object*."""

    model_config = _DOCUMENT_CONFIG

    description: str = ""
    headers: dict[str, Any] = Field(default_factory=dict)
    content: dict[str, MediaType] = Field(default_factory=dict)


ResponseOrReference = _or_reference(Response)


class Operation(BaseModel):
    """An OpenAPI *Operation Object* (one path + HTTP method pair)."""

    model_config = _DOCUMENT_CONFIG

    tags: list[str] = Field(default_factory=list)
    summary: Optional[str] = None
    description: Optional[str] = None
    operation_id: Optional[str] = Field(default=None, alias="operationId")
    parameters: list[ParameterOrReference] = Field(default_factory=list)
    request_body: Optional[RequestBodyOrReference] = Field(
        default=None, alias="requestBody"
    )
    responses: dict[str, ResponseOrReference] = Field(default_factory=dict)
    deprecated: bool = False
    security: Optional[list[dict[str, list[str]]]] = None


class PathItem(BaseModel):
    """An OpenAPI *Path Item Object* with its eight method slots."""

    model_config = _DOCUMENT_CONFIG

    summary: Optional[str] = None
    description: Optional[str] = None
    parameters: list[ParameterOrReference] = Field(default_factory=list)
    get: Optional[Operation] = None
    put: Optional[Operation] = None
    post: Optional[Operation] = None
    delete: Optional[Operation] = None
    options: Optional[Operation] = None
    head: Optional[Operation] = None
    patch: Optional[Operation] = None
    trace: Optional[Operation] = None

    def operations(self) -> Iterator[tuple[HTTPMethod, Operation]]:
        """Yield ``(method, operation)`` for every declared method, in :class:`HTTPMethod` order."""
        for method in HTTPMethod:
            operation = getattr(self, method.value)
            if operation is not None:
                yield method, operation


# --- Components and document root ---


class SecurityScheme(BaseModel):
    """An OpenAPI *Security Scheme Object*.

    Only the fields relevant to the scheme ``type`` are populated.
    """

    model_config = _DOCUMENT_CONFIG

    type: str
    description: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = Field(default=None, alias="in")
    scheme: Optional[str] = None
    bearer_format: Optional[str] = Field(default=None, alias="bearerFormat")
    flows: Optional[dict[str, Any]] = None
    openid_connect_url: Optional[str] = Field(default=None, alias="openIdConnectUrl")


SecuritySchemeOrReference = _or_reference(SecurityScheme)


class Components(BaseModel):
    """The document's table of reusable, named components."""

    model_config = _DOCUMENT_CONFIG

    schemas: dict[str, SchemaOrReference] = Field(default_factory=dict)
    parameters: dict[str, ParameterOrReference] = Field(default_factory=dict)
    responses: dict[str, ResponseOrReference] = Field(default_factory=dict)
    request_bodies: dict[str, RequestBodyOrReference] = Field(
        default_factory=dict, alias="requestBodies"
    )
    security_schemes: dict[str, SecuritySchemeOrReference] = Field(
        default_factory=dict, alias="securitySchemes"
    )


class ContactInfo(BaseModel):
    model_config = _DOCUMENT_CONFIG

    name: Optional[str] = None
    url: Optional[str] = None
    email: Optional[str] = None


class LicenseInfo(BaseModel):
    model_config = _DOCUMENT_CONFIG

    name: str
    url: Optional[str] = None


class APIInfo(BaseModel):
    """API metadata from the document's *Info Object*."""

    model_config = _DOCUMENT_CONFIG

    title: str
    version: str
    description: Optional[str] = None
    terms_of_service: Optional[str] = Field(default=None, alias="termsOfService")
    contact: Optional[ContactInfo] = None
    license: Optional[LicenseInfo] = None

    @field_validator("title", "version", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        # YAML reads `version: 1.0` as a float.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class ServerInfo(BaseModel):
    model_config = _DOCUMENT_CONFIG

    url: str
    description: Optional[str] = None


class TagInfo(BaseModel):
    """A globally declared tag."""

    model_config = _DOCUMENT_CONFIG

    name: str
    description: Optional[str] = None


class OpenAPIDocument(BaseModel):
    """The typed, read-only root of an OpenAPI 3.x document.

    Built once per session by :func:`~specflat.parser.loader.build_document`,
    which performs the document-level checks (version, info fields) before
    constructing this model.

    See Also:
        :class:`~specflat.catalog.SchemaCatalog`: Query surface over a document.
    """

    model_config = _DOCUMENT_CONFIG

    openapi: str
    info: APIInfo
    servers: list[ServerInfo] = Field(default_factory=list)
    paths: dict[str, PathItem] = Field(default_factory=dict)
    components: Optional[Components] = None
    tags: list[TagInfo] = Field(default_factory=list)
    security: list[dict[str, list[str]]] = Field(default_factory=list)

    @field_validator("openapi", mode="before")
    @classmethod
    def _stringify_version(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("paths", "tags", "servers", "security", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        # ``paths:`` with no body loads from YAML as None.
        if value is None:
            return {} if info.field_name == "paths" else []
        return value

    def get_path(self, path: str) -> Optional[PathItem]:
        """Return the path item declared for *path*, or ``None``."""
        return self.paths.get(path)

    def get_schema(self, name: str) -> Optional[SchemaOrReference]:
        """Return the raw components-table entry named *name*, or ``None``."""
        if self.components is None:
            return None
        return self.components.schemas.get(name)

    def schema_names(self) -> list[str]:
        """Return component schema names in declaration order."""
        if self.components is None:
            return []
        return list(self.components.schemas)


for _model in (SchemaNode, Variant, ResolvedSchema, Parameter, MediaType, Operation,
               PathItem, Components, OpenAPIDocument):
    _model.model_rebuild()

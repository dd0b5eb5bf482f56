"""Load OpenAPI documents from a URL, local file, or stdin.

This module handles all I/O for fetching raw OpenAPI documents, converting
them into Python dictionaries, and building the typed
:class:`~specflat.models.OpenAPIDocument`. JSON and YAML are both supported
with automatic format detection.

The public functions are:

* :func:`load_spec` -- Load and parse a raw spec dict from any supported source.
* :func:`validate_openapi_version` -- Check and return the ``openapi`` version
  string, rejecting Swagger 2.x and anything that is not 3.x.
* :func:`build_document` -- Run the document-level checks and construct the
  frozen document model.
* :func:`load_document` -- :func:`load_spec` followed by :func:`build_document`.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import ValidationError

from specflat.exceptions import (
    MissingFieldError,
    SpecParseError,
    UnsupportedOpenAPIVersionError,
)
from specflat.models import OpenAPIDocument

logger = logging.getLogger(__name__)


def load_spec(source: str) -> dict[str, Any]:
    """Load an OpenAPI spec from URL, file path, or stdin ('-').

    Supports JSON and YAML formats.
    Auto-detects format from content/extension.

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The parsed spec as a dictionary.

    Raises:
        SpecParseError: If the source cannot be loaded or parsed.
    """
    logger.debug("Loading spec from %s", source)
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SpecParseError("No input received from stdin")

    return _parse_content(content, hint="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch spec from URL, using the response content-type as a format hint."""
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching spec from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch spec from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Load spec from a local ``.json``/``.yaml``/``.yml`` file.

    Unknown extensions fall back to content-based detection.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML, since
    every JSON document is also valid YAML but the JSON parser is stricter.

    Args:
        content: The raw string content.
        hint: Optional format hint ('json' or 'yaml').

    Returns:
        The parsed dictionary.

    Raises:
        SpecParseError: If the content cannot be parsed as either format,
            or does not hold an object at the top level.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to parse spec as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecParseError(msg) from exc

    return _require_mapping(result)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"Spec must be a JSON/YAML object (got {kind})")
    return result


def validate_openapi_version(spec: dict[str, Any]) -> str:
    """Validate and return the OpenAPI version string.

    Any version beginning with ``"3."`` is accepted.

    Args:
        spec: The parsed spec dictionary.

    Returns:
        The OpenAPI version string (e.g., '3.0.3', '3.1.0').

    Raises:
        UnsupportedOpenAPIVersionError: For Swagger 2.x or non-3.x versions.
        MissingFieldError: If the ``openapi`` field is absent.
    """
    if "swagger" in spec:
        raise UnsupportedOpenAPIVersionError(
            str(spec["swagger"]),
            "$.swagger",
            hint="Only OpenAPI 3.x is supported. "
            "Consider converting with https://converter.swagger.io",
        )

    openapi_version = spec.get("openapi")
    if openapi_version is None or str(openapi_version).strip() == "":
        raise MissingFieldError("openapi", "$")

    version_str = str(openapi_version)
    if not version_str.startswith("3."):
        raise UnsupportedOpenAPIVersionError(
            version_str, hint="Only OpenAPI 3.x is supported."
        )
    return version_str


def build_document(raw: dict[str, Any]) -> OpenAPIDocument:
    """Validate a raw spec dict and construct the typed document model.

    Checks run in order and the first failure aborts: declared version,
    presence of ``info``, non-empty ``info.title`` and ``info.version``.
    ``paths`` may be missing or empty (component-only specs).

    Args:
        raw: The raw spec dictionary, as returned by :func:`load_spec`.

    Returns:
        A frozen :class:`~specflat.models.OpenAPIDocument`.

    Raises:
        UnsupportedOpenAPIVersionError: If the version is not 3.x.
        MissingFieldError: If ``openapi``, ``info``, ``info.title`` or
            ``info.version`` is missing or empty.
        SpecParseError: If the document does not match the expected shape
            (wraps the Pydantic validation error).
    """
    validate_openapi_version(raw)

    info = raw.get("info")
    if not isinstance(info, dict):
        raise MissingFieldError("info", "$")
    for field in ("title", "version"):
        value = info.get(field)
        if value is None or str(value).strip() == "":
            raise MissingFieldError(field, "$.info")

    try:
        document = OpenAPIDocument.model_validate(raw)
    except ValidationError as exc:
        raise SpecParseError(f"Invalid OpenAPI document: {exc}") from exc

    logger.debug(
        "Built document '%s' %s (%d paths, %d schemas)",
        document.info.title,
        document.info.version,
        len(document.paths),
        len(document.schema_names()),
    )
    return document


def load_document(source: str) -> OpenAPIDocument:
    """Load *source* and build the typed document in one step.

    Example::

        document = load_document("petstore.yaml")
        catalog = SchemaCatalog(document)
    """
    return build_document(load_spec(source))

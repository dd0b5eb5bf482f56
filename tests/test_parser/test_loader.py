"""Tests for specflat.parser.loader."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from specflat.exceptions import (
    MissingFieldError,
    SpecParseError,
    UnsupportedOpenAPIVersionError,
)
from specflat.models import OpenAPIDocument, Reference
from specflat.parser.loader import (
    _parse_content,
    build_document,
    load_document,
    load_spec,
    validate_openapi_version,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def _minimal(**overrides) -> dict:
    raw = {"openapi": "3.0.3", "info": {"title": "Test", "version": "1.0"}}
    raw.update(overrides)
    return raw


# ---------------------------------------------------------------------------
# load_spec dispatch
# ---------------------------------------------------------------------------


class TestLoadSpec:
    """Test load_spec dispatcher routes to the correct loader."""

    def test_loads_from_file_json(self) -> None:
        result = load_spec(str(FIXTURES_DIR / "petstore.json"))
        assert result["openapi"] == "3.0.3"
        assert result["info"]["title"] == "Petstore"

    def test_loads_from_file_yaml(self, tmp_path: Path) -> None:
        yaml_content = textwrap.dedent("""\
            openapi: "3.0.3"
            info:
              title: YAML Test
              version: "1.0.0"
            paths: {}
        """)
        yaml_file = tmp_path / "spec.yaml"
        yaml_file.write_text(yaml_content, encoding="utf-8")
        result = load_spec(str(yaml_file))
        assert result["info"]["title"] == "YAML Test"

    def test_loads_from_stdin(self) -> None:
        spec_json = json.dumps(_minimal(info={"title": "stdin test", "version": "1.0"}))
        with patch("specflat.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(spec_json)
            result = load_spec("-")
        assert result["info"]["title"] == "stdin test"

    def test_empty_stdin_raises(self) -> None:
        with patch("specflat.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("   \n")
            with pytest.raises(SpecParseError, match="No input"):
                load_spec("-")

    def test_loads_from_url(self) -> None:
        mock_response = httpx.Response(
            status_code=200,
            json=_minimal(info={"title": "URL test", "version": "1.0"}),
            request=httpx.Request("GET", "https://example.com/spec.json"),
        )
        with patch("specflat.parser.loader.httpx.get", return_value=mock_response) as mock_get:
            result = load_spec("https://example.com/spec.json")
        assert result["info"]["title"] == "URL test"
        mock_get.assert_called_once_with(
            "https://example.com/spec.json", timeout=30.0, follow_redirects=True
        )

    def test_url_http_error_raises(self) -> None:
        mock_response = httpx.Response(
            status_code=404,
            request=httpx.Request("GET", "https://example.com/missing.json"),
        )
        with patch("specflat.parser.loader.httpx.get", return_value=mock_response):
            with pytest.raises(SpecParseError, match="HTTP 404"):
                load_spec("https://example.com/missing.json")

    def test_url_connection_error_raises(self) -> None:
        request = httpx.Request("GET", "https://example.com/spec.json")
        with patch(
            "specflat.parser.loader.httpx.get",
            side_effect=httpx.ConnectError("refused", request=request),
        ):
            with pytest.raises(SpecParseError, match="Failed to fetch"):
                load_spec("https://example.com/spec.json")

    def test_file_not_found_raises(self) -> None:
        with pytest.raises(SpecParseError, match="not found"):
            load_spec("/nonexistent/path/to/spec.json")

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.yaml"
        empty.write_text("", encoding="utf-8")
        with pytest.raises(SpecParseError, match="empty"):
            load_spec(str(empty))


# ---------------------------------------------------------------------------
# _parse_content
# ---------------------------------------------------------------------------


class TestParseContent:
    """Test JSON/YAML content detection."""

    def test_json_without_hint(self) -> None:
        assert _parse_content('{"a": 1}') == {"a": 1}

    def test_yaml_fallback_without_hint(self) -> None:
        assert _parse_content("a: 1\nb: two\n") == {"a": 1, "b": "two"}

    def test_invalid_json_with_json_hint_raises(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid JSON"):
            _parse_content("a: 1", hint="json")

    def test_non_mapping_raises(self) -> None:
        with pytest.raises(SpecParseError, match="must be a JSON/YAML object"):
            _parse_content("[1, 2, 3]")

    def test_unparseable_raises(self) -> None:
        with pytest.raises(SpecParseError, match="JSON or YAML"):
            _parse_content("key: [unclosed")


# ---------------------------------------------------------------------------
# validate_openapi_version
# ---------------------------------------------------------------------------


class TestValidateOpenAPIVersion:
    """Test OpenAPI version validation."""

    @pytest.mark.parametrize("version", ["3.0.0", "3.0.3", "3.1.0"])
    def test_accepts_3x(self, version: str) -> None:
        assert validate_openapi_version({"openapi": version}) == version

    def test_rejects_swagger_2(self) -> None:
        with pytest.raises(UnsupportedOpenAPIVersionError) as exc_info:
            validate_openapi_version({"swagger": "2.0"})
        assert exc_info.value.version == "2.0"
        assert "$.swagger" in str(exc_info.value)
        assert "converter.swagger.io" in str(exc_info.value)

    def test_rejects_non_3x(self) -> None:
        with pytest.raises(UnsupportedOpenAPIVersionError, match="'4.0.0' at \\$.openapi"):
            validate_openapi_version({"openapi": "4.0.0"})

    def test_missing_version_raises(self) -> None:
        with pytest.raises(MissingFieldError) as exc_info:
            validate_openapi_version({"info": {}})
        assert exc_info.value.field == "openapi"


# ---------------------------------------------------------------------------
# build_document / load_document
# ---------------------------------------------------------------------------


class TestBuildDocument:
    """Test document-level validation and model construction."""

    def test_builds_petstore(self, petstore_raw: dict) -> None:
        document = build_document(petstore_raw)
        assert isinstance(document, OpenAPIDocument)
        assert document.info.title == "Petstore"
        assert list(document.paths) == ["/pets", "/pets/{petId}", "/health"]
        assert document.schema_names()[:3] == ["NewPet", "Pet", "Dog"]

    def test_empty_title_rejected(self) -> None:
        with pytest.raises(MissingFieldError) as exc_info:
            build_document(_minimal(info={"title": "", "version": "1.0"}))
        assert exc_info.value.field == "title"
        assert exc_info.value.path == "$.info"
        assert str(exc_info.value) == "Missing required field 'title' at $.info"

    def test_missing_version_in_info_rejected(self) -> None:
        with pytest.raises(MissingFieldError, match="'version' at \\$.info"):
            build_document(_minimal(info={"title": "Test"}))

    def test_missing_info_rejected(self) -> None:
        raw = {"openapi": "3.0.3"}
        with pytest.raises(MissingFieldError, match="'info' at \\$"):
            build_document(raw)

    def test_version_checked_before_info(self) -> None:
        with pytest.raises(UnsupportedOpenAPIVersionError):
            build_document({"openapi": "2.0", "info": {}})

    def test_paths_may_be_absent(self) -> None:
        document = build_document(_minimal())
        assert document.paths == {}

    def test_null_paths_from_yaml(self) -> None:
        raw = _parse_content("openapi: 3.1.0\ninfo:\n  title: T\n  version: 1.0\npaths:\n")
        document = build_document(raw)
        assert document.paths == {}
        assert document.info.version == "1.0"

    def test_shape_error_wrapped(self) -> None:
        raw = _minimal(paths={"/x": {"get": {"tags": "not-a-list"}}})
        with pytest.raises(SpecParseError, match="Invalid OpenAPI document"):
            build_document(raw)

    def test_references_parsed_structurally(self, petstore_raw: dict) -> None:
        document = build_document(petstore_raw)
        alias = document.get_schema("PetAlias")
        assert isinstance(alias, Reference)
        assert alias.ref == "#/components/schemas/Pet"

    def test_load_document_from_file(self) -> None:
        document = load_document(str(FIXTURES_DIR / "petstore.json"))
        assert document.openapi == "3.0.3"

"""Integration tests for the specflat command line.

Every test runs the real root Typer app through ``CliRunner`` against the
petstore fixture, inside an isolated config environment, and checks the
rendered output and exit code.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from specflat import __version__
from specflat.app import app, main
from specflat.exceptions import SpecParseError
from specflat.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_RESOLUTION_ERROR,
    EXIT_SPEC_PARSE_ERROR,
)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _isolated(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setattr("specflat.config._is_xdg_platform", lambda: True)
    monkeypatch.setattr("specflat.app._setup_signal_handlers", lambda: None)
    return isolated_config


def _json(runner: CliRunner, *args: str):
    result = runner.invoke(app, ["--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip() == f"specflat {__version__}"

    def test_no_spec_configured(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["schemas"])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "No spec given" in result.output

    def test_spec_from_env(
        self, runner: CliRunner, petstore_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECFLAT_SPEC", str(petstore_path))
        result = runner.invoke(app, ["--json", "tags"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == ["admin", "pets", "store"]

    def test_spec_from_project_config(
        self, runner: CliRunner, petstore_path: Path, isolated_config: Path
    ) -> None:
        (isolated_config / "specflat.json").write_text(
            json.dumps({"spec": str(petstore_path), "format": "json"})
        )
        result = runner.invoke(app, ["tags"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == ["admin", "pets", "store"]

    def test_bad_project_config(self, runner: CliRunner, isolated_config: Path) -> None:
        (isolated_config / "specflat.json").write_text("{oops")
        result = runner.invoke(app, ["tags"])
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "Invalid project config" in result.output


# ---------------------------------------------------------------------------
# Catalog commands
# ---------------------------------------------------------------------------


class TestInfo:
    def test_info_json(self, runner: CliRunner, petstore_path: Path) -> None:
        data = _json(runner, "--spec", str(petstore_path), "info")
        assert data["title"] == "Petstore"
        assert data["openapi_version"] == "3.0.3"
        assert data["paths"] == 3
        assert data["operations"] == 5
        assert data["schemas"] == 6
        assert data["license"] == "MIT"

    def test_info_plain(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(app, ["--plain", "-s", str(petstore_path), "info"])
        assert result.exit_code == 0
        assert "title\tPetstore" in result.output.splitlines()


class TestSchemas:
    def test_schemas_table_json(self, runner: CliRunner, petstore_path: Path) -> None:
        rows = _json(runner, "-s", str(petstore_path), "schemas")
        by_name = {row["Schema"]: row for row in rows}
        assert list(by_name) == ["NewPet", "Pet", "Dog", "Animal", "Contact", "PetAlias"]
        assert by_name["Pet"]["Composition"] == "allOf"
        assert by_name["Pet"]["Properties"] == "name, tag, id"
        assert by_name["Animal"]["Variants"] == "Dog, Variant2"
        assert by_name["Contact"]["Variants"] == "Option1, Option2"
        assert by_name["Dog"]["Composition"] == "-"

    def test_schemas_plain(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(app, ["--plain", "-s", str(petstore_path), "schemas"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "Schema\tType\tComposition\tVariants\tProperties"
        assert lines[1].startswith("NewPet\tobject\t-")

    def test_schemas_resolution_error(self, runner: CliRunner) -> None:
        fixture = Path(__file__).parent.parent / "fixtures" / "broken_refs.json"
        result = runner.invoke(app, ["--json", "-s", str(fixture), "schemas"])
        assert result.exit_code == EXIT_RESOLUTION_ERROR
        assert "Circular reference detected" in result.output

    def test_schemas_none_defined(self, runner: CliRunner, tmp_path: Path) -> None:
        spec = tmp_path / "empty.yaml"
        spec.write_text("openapi: 3.1.0\ninfo:\n  title: Empty\n  version: '1'\n")
        result = runner.invoke(app, ["--plain", "-s", str(spec), "schemas"])
        assert result.exit_code == 0
        assert "No schemas defined" in result.output


class TestSchema:
    def test_schema_json(self, runner: CliRunner, petstore_path: Path) -> None:
        data = _json(runner, "-s", str(petstore_path), "schema", "Animal")
        assert data["composition"] == "oneOf"
        assert data["required"] == ["petType"]
        assert data["properties"] == {"petType": {"type": "string"}}
        assert [v["name"] for v in data["variants"]] == ["Dog", "Variant2"]
        assert "oneOf" not in data

    def test_schema_all_of_merged(self, runner: CliRunner, petstore_path: Path) -> None:
        data = _json(runner, "-s", str(petstore_path), "schema", "Pet")
        assert data["required"] == ["name", "id"]
        assert data["properties"]["id"] == {"type": "integer", "format": "int64"}

    def test_schema_to_file(self, runner: CliRunner, petstore_path: Path, tmp_path: Path) -> None:
        target = tmp_path / "contact.json"
        result = runner.invoke(
            app, ["-o", str(target), "-s", str(petstore_path), "schema", "Contact"]
        )
        assert result.exit_code == 0
        assert json.loads(target.read_text())["composition"] == "anyOf"

    def test_unknown_schema(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(app, ["-s", str(petstore_path), "schema", "Ghost"])
        assert result.exit_code == EXIT_RESOLUTION_ERROR
        assert "Reference '#/components/schemas/Ghost' not found" in result.output

    def test_unparseable_spec(self, runner: CliRunner, tmp_path: Path) -> None:
        spec = tmp_path / "swagger.json"
        spec.write_text(json.dumps({"swagger": "2.0", "info": {}}))
        result = runner.invoke(app, ["-s", str(spec), "schema", "Pet"])
        assert result.exit_code == EXIT_SPEC_PARSE_ERROR
        assert "Unsupported OpenAPI version '2.0'" in result.output


class TestOperationsAndTags:
    def test_operations_grouped(self, runner: CliRunner, petstore_path: Path) -> None:
        rows = _json(runner, "-s", str(petstore_path), "operations")
        pairs = [(row["Tag"], row["Operation ID"]) for row in rows]
        assert pairs == [
            ("Default", "health"),
            ("admin", "createPet"),
            ("pets", "listPets"),
            ("pets", "createPet"),
            ("pets", "showPetById"),
            ("pets", "deletePet"),
        ]

    def test_operations_filtered_by_tag(self, runner: CliRunner, petstore_path: Path) -> None:
        rows = _json(runner, "-s", str(petstore_path), "operations", "--tag", "admin")
        assert rows == [{
            "Tag": "admin",
            "Method": "POST",
            "Path": "/pets",
            "Operation ID": "createPet",
            "Summary": "Create a pet",
        }]

    def test_operations_unknown_tag(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(app, ["-s", str(petstore_path), "operations", "--tag", "nope"])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "No operations tagged 'nope'" in result.output

    def test_tags_plain(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(app, ["--plain", "-s", str(petstore_path), "tags"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["admin", "pets", "store"]


# ---------------------------------------------------------------------------
# Config commands
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_set_spec_then_use_it(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(app, ["config", "set-spec", str(petstore_path)])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["--json", "tags"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == ["admin", "pets", "store"]

    def test_set_format(self, runner: CliRunner, petstore_path: Path) -> None:
        assert runner.invoke(app, ["config", "set-format", "json"]).exit_code == 0
        result = runner.invoke(app, ["-s", str(petstore_path), "tags"])
        assert json.loads(result.output) == ["admin", "pets", "store"]

    def test_set_format_rejects_unknown(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["config", "set-format", "xml"])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "Unknown output format 'xml'" in result.output

    def test_show(self, runner: CliRunner, petstore_path: Path) -> None:
        runner.invoke(app, ["config", "set-spec", "stored.yaml"])
        result = runner.invoke(
            app, ["--json", "--quiet", "-s", str(petstore_path), "config", "show"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["default_spec"] == "stored.yaml"
        assert data["effective_spec"] == str(petstore_path)
        assert data["output"] == {"format": "auto"}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


class TestMain:
    def test_specflat_error_maps_to_exit_code(self) -> None:
        with patch("specflat.app.app", side_effect=SpecParseError("bad spec")):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == EXIT_SPEC_PARSE_ERROR

    def test_unexpected_error_writes_crash_log(self, isolated_config: Path) -> None:
        with patch("specflat.app.app", side_effect=RuntimeError("kaboom")):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == EXIT_GENERIC_FAILURE

        logs = list((isolated_config / "data" / "specflat").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: kaboom" in logs[0].read_text()

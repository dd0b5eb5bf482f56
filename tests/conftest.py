"""Shared test fixtures for specflat.

Provides reusable fixtures for loading spec fixtures, building documents and
catalogs, creating isolated config environments, managing output state, and
running CLI commands. These fixtures are automatically discovered by pytest
and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from specflat.catalog import SchemaCatalog
from specflat.models import OpenAPIDocument
from specflat.output import OutputFormat, OutputManager, reset_output, set_output
from specflat.parser import build_document


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _make_document(
    schemas: dict[str, Any] | None = None,
    paths: dict[str, Any] | None = None,
    **extra: Any,
) -> OpenAPIDocument:
    """Build a minimal valid document around *schemas* and *paths*."""
    raw: dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {"title": "Test API", "version": "1.0.0"},
        "paths": paths or {},
        **extra,
    }
    if schemas is not None:
        raw["components"] = {"schemas": schemas}
    return build_document(raw)


@pytest.fixture
def make_document():
    """Factory building a minimal valid document, see :func:`_make_document`."""
    return _make_document


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Load the raw petstore spec dict."""
    with open(FIXTURES_DIR / "petstore.json") as f:
        return json.load(f)


@pytest.fixture
def petstore_document(petstore_raw: dict[str, Any]) -> OpenAPIDocument:
    return build_document(petstore_raw)


@pytest.fixture
def petstore_catalog(petstore_document: OpenAPIDocument) -> SchemaCatalog:
    return SchemaCatalog(petstore_document)


@pytest.fixture
def broken_refs_document() -> OpenAPIDocument:
    """Document whose components hold a cycle, a dangling and an external ref."""
    with open(FIXTURES_DIR / "broken_refs.json") as f:
        return build_document(json.load(f))


@pytest.fixture
def petstore_path(tmp_path: Path) -> Path:
    """Copy the petstore fixture into tmp_path and return its path."""
    spec_path = tmp_path / "petstore.json"
    spec_path.write_text((FIXTURES_DIR / "petstore.json").read_text())
    return spec_path


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets HOME, XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of
    tmp_path so that tests never touch real user config. Clears all
    SPECFLAT_* environment variables and changes the working directory to
    tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["SPECFLAT_SPEC", "SPECFLAT_FORMAT", "NO_COLOR"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()

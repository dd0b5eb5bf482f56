"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for specflat:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.specflat/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~specflat.models.GlobalConfig`
  JSON file storing the default spec source and output format.
* **Project config** -- An optional ``./specflat.json`` pinning the spec a
  repository works with.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  effective configuration.

Writes go through :func:`_atomic_write` (temp file, then rename) so an
interrupted save never leaves a truncated config behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specflat.exceptions import ConfigError
from specflat.models import GlobalConfig

_APP_NAME = "specflat"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "specflat.json"

ENV_SPEC = "SPECFLAT_SPEC"
ENV_FORMAT = "SPECFLAT_FORMAT"

OUTPUT_FORMATS = ("auto", "json", "plain", "rich")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True on platforms following the XDG Base Directory spec (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from *env_var*, else ``$HOME/<segments>``."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/specflat/`` (default ``~/.config/specflat/``).
    On macOS/Windows: ``~/.specflat/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/specflat/`` (default ``~/.local/share/specflat/``).
    On macOS/Windows: ``~/.specflat/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* atomically using a sibling temp file + ``os.replace``.

    On any failure (including KeyboardInterrupt) the temp file is removed and
    the original file is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~specflat.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file holds invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    _validate_format(config.output.format)
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./specflat.json``.

    Recognised keys are ``spec`` (default spec source for this repository)
    and ``format`` (output format).

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file holds invalid JSON or is not an object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Project config at {path} must be a JSON object")
    return data


# --- Precedence resolution ---


def _validate_format(value: str) -> str:
    if value not in OUTPUT_FORMATS:
        raise ConfigError(
            f"Unknown output format '{value}'. Choose one of: {', '.join(OUTPUT_FORMATS)}"
        )
    return value


def resolve_config(
    cli_spec: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> tuple[GlobalConfig, Optional[str]]:
    """Resolve config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_spec``, ``cli_format``)
        2. Environment variables (``SPECFLAT_SPEC``, ``SPECFLAT_FORMAT``)
        3. Project config (``./specflat.json``)
        4. User config (``~/.config/specflat/config.json``)
        5. Defaults

    Returns:
        A tuple of ``(effective_config, spec_source_or_None)``. The returned
        config's ``default_spec`` and ``output.format`` hold the resolved
        values; nothing is written back to disk.

    Raises:
        ConfigError: On unreadable config files or an unknown output format.
    """
    config = load_global_config()
    spec: Optional[str] = config.default_spec
    fmt: str = config.output.format

    project = load_project_config()
    if project is not None:
        spec = project.get("spec", spec)
        fmt = project.get("format", fmt)

    spec = os.environ.get(ENV_SPEC) or spec
    fmt = os.environ.get(ENV_FORMAT) or fmt

    if cli_spec is not None:
        spec = cli_spec
    if cli_format is not None:
        fmt = cli_format

    config.default_spec = spec
    config.output.format = _validate_format(fmt)
    return config, spec

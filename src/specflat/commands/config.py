"""Config commands -- view and modify global configuration.

Provides the ``specflat config`` sub-command group for reading and updating
the user's global configuration file (:class:`~specflat.models.GlobalConfig`).
Settings are persisted in the specflat config directory and supply the
lowest-precedence defaults for the spec source and output format.
"""

from __future__ import annotations

import typer

from specflat.exceptions import ConfigError
from specflat.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the stored configuration and the effective spec source.

    Example::

        specflat config show
        specflat --json config show
    """
    from specflat.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    data = config.model_dump(mode="json")
    data["effective_spec"] = ctx.obj.get("spec") if ctx.obj else None
    format_response(data)


@config_app.command("set-spec")
def config_set_spec(
    source: str = typer.Argument(help="Spec file path or URL to use by default."),
) -> None:
    """Set the default spec source.

    Example::

        specflat config set-spec ./openapi.yaml
        specflat config set-spec https://petstore3.swagger.io/api/v3/openapi.json
    """
    from specflat.config import load_global_config, save_global_config

    config = load_global_config()
    config.default_spec = source
    save_global_config(config)
    success(f"Set default_spec = {source}")


@config_app.command("set-format")
def config_set_format(
    value: str = typer.Argument(help="One of: auto, json, plain, rich."),
) -> None:
    """Set the default output format.

    Raises:
        typer.Exit: With code 2 if *value* is not a known format.

    Example::

        specflat config set-format json
    """
    from specflat.config import OUTPUT_FORMATS, load_global_config, save_global_config

    if value not in OUTPUT_FORMATS:
        error(f"Unknown output format '{value}'. Choose one of: {', '.join(OUTPUT_FORMATS)}")
        raise typer.Exit(code=2)

    config = load_global_config()
    config.output.format = value
    try:
        save_global_config(config)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    success(f"Set output.format = {value}")

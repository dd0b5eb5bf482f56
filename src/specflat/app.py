"""Typer application and CLI entry point for specflat.

This module builds the top-level Typer application, registers the catalog
commands (``info``, ``schemas``, ``schema``, ``operations``, ``tags``) and the
``config`` sub-command group, and resolves global options into the shared
:class:`~specflat.output.OutputManager` before any command runs.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app and
maps escaped :class:`~specflat.exceptions.SpecflatError` instances onto their
exit codes. Any other exception is written to a crash log under the data
directory.

See Also:
    :mod:`specflat.config`: Precedence resolution used by :func:`main_callback`.
    :mod:`specflat.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from specflat import __version__
from specflat.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="specflat",
    help="Resolve references and compositions in OpenAPI 3.x documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from specflat.commands.catalog import (  # noqa: E402
    info_command,
    operations_command,
    schema_command,
    schemas_command,
    tags_command,
)
from specflat.commands.config import config_app  # noqa: E402

app.command("info")(info_command)
app.command("schemas")(schemas_command)
app.command("schema")(schema_command)
app.command("operations")(operations_command)
app.command("tags")(tags_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specflat {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    spec: Optional[str] = typer.Option(
        None, "--spec", "-s", help="Spec file path, URL, or '-' for stdin."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Output file path."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Resolves the effective spec source and output format through
    :func:`~specflat.config.resolve_config`, installs the global
    :class:`~specflat.output.OutputManager`, routes the ``specflat`` logger
    through it, and stores the spec source in ``ctx.obj["spec"]``.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        spec: Spec source override (highest precedence).
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output and logging.
        output_file: Redirect primary data output to a file path.
    """
    from specflat.config import resolve_config
    from specflat.exceptions import SpecflatError
    from specflat.output import OutputFormat, OutputManager, error, set_output

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value

    try:
        config, spec_source = resolve_config(cli_spec=spec, cli_format=cli_format)
    except SpecflatError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    output = OutputManager(
        format=OutputFormat(config.output.format),
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
        output_file=output_file,
    )
    set_output(output)
    output.configure_logging()

    ctx.ensure_object(dict)
    ctx.obj["spec"] = spec_source


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from specflat.config import get_data_dir

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = get_data_dir() / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``specflat`` console script.

    Unhandled :class:`~specflat.exceptions.SpecflatError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from specflat.exceptions import SpecflatError
        from specflat.output import error

        if isinstance(exc, SpecflatError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)

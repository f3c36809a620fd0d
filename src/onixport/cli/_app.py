"""App configuration, callbacks, and shared types for the CLI.

This module contains the Typer application factory, the main callback
(global --verbose/--log-file/--version options), shared enums and helpers
used by the command modules.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from onixport import __version__
from onixport.console import console, print_error

logger = logging.getLogger(__name__)

# =============================================================================
# Help Panel Names
# =============================================================================

IMPORT_COMMANDS = "Import"
EXPORT_COMMANDS = "Export"


# =============================================================================
# Shared Enums
# =============================================================================


class ExportVersion(str, Enum):
    """ONIX versions that can be exported."""

    v30 = "3.0"
    v31 = "3.1"


# =============================================================================
# Shared Helpers
# =============================================================================


def read_input_file(path: Path) -> bytes:
    """Read a file given on the command line, exiting with code 2 on failure."""
    try:
        return path.read_bytes()
    except OSError as e:
        print_error(f"Cannot read {path}: {e}")
        raise typer.Exit(2) from e


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"onixport [version]{__version__}[/]")
        raise typer.Exit()


# =============================================================================
# App Factory
# =============================================================================


MAIN_EPILOG = """
[bold cyan]Typical Workflow:[/]
  onixport detect feed.xml            [dim]# Which ONIX version is this?[/]
  onixport preview feed.xml           [dim]# What would an import do?[/]
  onixport export titles.json         [dim]# Build ONIX 3.1 for a catalogue dump[/]
  onixport validate onix-31-acme.xml  [dim]# Check an ONIX 3.x message[/]

[dim]Limits and defaults come from ONIX_* environment variables.[/]
"""


def make_app() -> typer.Typer:
    """Create and configure the main Typer application."""
    return typer.Typer(
        name="onixport",
        help="ONIX 2.1/3.0/3.1 metadata import and export",
        epilog=MAIN_EPILOG,
        rich_markup_mode="rich",
        pretty_exceptions_enable=True,
        pretty_exceptions_show_locals=False,
        no_args_is_help=True,
        add_completion=False,
        context_settings={"help_option_names": ["-h", "--help"]},
    )


# =============================================================================
# Logging Setup Helper
# =============================================================================


def setup_logging(verbose: bool, log_file: Path | None) -> None:
    """Configure logging based on options and LOG_LEVEL."""
    from onixport.env_settings import get_env_settings
    from onixport.exceptions import ConfigurationError
    from onixport.logging_setup import setup_logging as _setup_logging

    log_level = "DEBUG" if verbose else "INFO"
    if not verbose:
        try:
            log_level = get_env_settings().app.log_level
        except ConfigurationError as e:
            print_error(e.message)
            raise typer.Exit(2) from e

    _setup_logging(
        log_level=log_level,
        log_file=log_file,
        rich_console=True,
        quiet_console=not verbose,
    )
    logger.debug("Logging at %s (log file: %s)", log_level, log_file or "none")


# =============================================================================
# Main Callback Factory
# =============================================================================


def create_main_callback(app: typer.Typer) -> None:
    """Register the main callback on the app."""

    @app.callback(invoke_without_command=True)
    def main_callback(
        ctx: typer.Context,
        version: Annotated[
            bool,
            typer.Option(
                "--version",
                "-V",
                callback=version_callback,
                is_eager=True,
                help="Show version and exit.",
            ),
        ] = False,
        verbose: Annotated[
            bool,
            typer.Option(
                "--verbose",
                "-v",
                help="Enable verbose (DEBUG) logging.",
            ),
        ] = False,
        log_file: Annotated[
            Path | None,
            typer.Option(
                "--log-file",
                help="Also write DEBUG logs to this file.",
                dir_okay=False,
            ),
        ] = None,
    ) -> None:
        """Convert between title catalogues and EDItEUR ONIX messages.

        [cyan]bytes → decode → detect → parse → map → validate → preview[/]
        """
        ctx.ensure_object(dict)
        ctx.obj["verbose"] = verbose
        ctx.obj["log_file"] = log_file

        setup_logging(verbose, log_file)

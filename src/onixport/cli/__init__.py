"""onixport CLI - Typer commands with Rich output.

Commands:
- Import: detect, validate, preview
- Export: export
"""

from __future__ import annotations

from onixport.cli._app import (
    EXPORT_COMMANDS,
    IMPORT_COMMANDS,
    ExportVersion,
    create_main_callback,
    make_app,
)

app = make_app()

# Register main callback (handles --version, --verbose, --log-file)
create_main_callback(app)


# =============================================================================
# Register Commands
# =============================================================================

from onixport.cli.export import register_export_commands  # noqa: E402
from onixport.cli.inspect import register_inspect_commands  # noqa: E402

register_inspect_commands(app)
register_export_commands(app)


def main() -> int:
    """Main entry point for the CLI."""
    try:
        app()
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0


__all__ = [
    "app",
    "main",
    "ExportVersion",
    "make_app",
    "IMPORT_COMMANDS",
    "EXPORT_COMMANDS",
]

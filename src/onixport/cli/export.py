"""Export command.

Commands: export
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from pydantic import BaseModel, Field, ValidationError

from onixport.catalog import Tenant, TitleWithAuthors
from onixport.cli._app import EXPORT_COMMANDS, ExportVersion, read_input_file
from onixport.console import (
    print_error,
    print_info,
    print_success,
    print_validation_issues,
    print_warning,
)
from onixport.exceptions import OnixportError
from onixport.export import export_titles


class ExportDocument(BaseModel):
    """JSON input for ``onixport export``: a tenant and its titles."""

    tenant: Tenant
    titles: list[TitleWithAuthors] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


def register_export_commands(app: typer.Typer) -> None:
    """Register export commands on the app."""

    @app.command(rich_help_panel=EXPORT_COMMANDS)
    def export(
        titles_json: Annotated[
            Path,
            typer.Argument(
                help='JSON file: {"tenant": {...}, "titles": [...]}.',
                exists=True,
                dir_okay=False,
            ),
        ],
        version: Annotated[
            ExportVersion | None,
            typer.Option("--version", "-r", help="ONIX release (default: ONIX_DEFAULT_VERSION)."),
        ] = None,
        output: Annotated[
            Path | None,
            typer.Option("--output", "-o", help="Output path (default: generated filename)."),
        ] = None,
        force: Annotated[
            bool,
            typer.Option("--force", help="Write the XML even when validation fails."),
        ] = False,
    ) -> None:
        """Build, validate and write an ONIX 3.x message.

        Titles without an ISBN are skipped. The file is only written when
        validation passes, unless [green]--force[/] is given.

        [bold]Examples:[/]
          onixport export titles.json
          onixport export titles.json --version 3.0 -o feed.xml
        """
        try:
            document = ExportDocument.model_validate_json(read_input_file(titles_json))
        except ValidationError as e:
            print_error(f"{titles_json.name}: invalid export document")
            for error in e.errors()[:5]:
                loc = ".".join(str(part) for part in error["loc"])
                print_info(f"{loc}: {error['msg']}")
            raise typer.Exit(2) from e

        try:
            result = export_titles(
                document.titles,
                document.tenant,
                version=version.value if version else None,
            )
        except OnixportError as e:
            print_error(e.message)
            raise typer.Exit(1) from e

        for title_id in result.skipped_title_ids:
            print_warning(f"Skipped title {title_id}: no ISBN")

        if not result.valid:
            print_validation_issues(result.validation.errors)
            if not force:
                print_error("Export failed validation; nothing written (use --force to override)")
                raise typer.Exit(1)
            print_warning("Writing invalid ONIX because --force was given")

        target = output or Path.cwd() / result.filename
        target.write_text(result.xml, encoding="utf-8")
        print_success(f"Wrote {result.product_count} products (ONIX {result.version}) to {target}")

"""Commands that read ONIX files without writing anything.

Commands: detect, validate, preview
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from onixport.cli._app import IMPORT_COMMANDS, read_input_file
from onixport.console import (
    console,
    print_error,
    print_import_issues,
    print_info,
    print_preview_table,
    print_success,
    print_validation_issues,
    print_warning,
)
from onixport.exceptions import ImportRejectedError, OnixportError
from onixport.importer.preview import build_import_preview
from onixport.onix.encoding import detect_and_convert_encoding
from onixport.onix.validator import validate_onix_message
from onixport.onix.version import detect_onix_version, estimate_product_count

FileArg = Annotated[
    Path,
    typer.Argument(help="ONIX file (.xml or .onix).", exists=True, dir_okay=False),
]


def _decode_or_exit(path: Path) -> str:
    try:
        return detect_and_convert_encoding(read_input_file(path))
    except ImportRejectedError as e:
        print_error(f"{path.name}: {e.message}")
        raise typer.Exit(1) from e


def register_inspect_commands(app: typer.Typer) -> None:
    """Register read-only ONIX commands on the app."""

    @app.command(rich_help_panel=IMPORT_COMMANDS)
    def detect(file: FileArg) -> None:
        """Detect the ONIX version of a file.

        Prints the version and the estimated number of products. Exits with
        code 1 when the version cannot be determined.
        """
        xml = _decode_or_exit(file)
        version = detect_onix_version(xml)
        if version == "unknown":
            print_error(f"{file.name}: not a recognisable ONIX message")
            raise typer.Exit(1)
        print_success(f"{file.name}: ONIX {version}")
        print_info(f"~{estimate_product_count(xml)} products")

    @app.command(rich_help_panel=IMPORT_COMMANDS)
    def validate(file: FileArg) -> None:
        """Run structural and business-rule validation on an ONIX 3.x file.

        [bold]Checks:[/]
          • Required Header and Product elements
          • Codelist values (Lists 5, 79, 150, 196)
          • ISBN-13 checksums, hazard combinations, prices

        Exits with code 1 when any error is found.
        """
        xml = _decode_or_exit(file)
        version = detect_onix_version(xml)
        if version == "2.1":
            print_warning("Validation rules target ONIX 3.x; a 2.1 message will not pass")

        result = validate_onix_message(xml)
        if result.valid:
            print_success(f"{file.name} is valid")
            return
        print_validation_issues(result.errors)
        print_error(f"{len(result.errors)} validation errors")
        raise typer.Exit(1)

    @app.command(rich_help_panel=IMPORT_COMMANDS)
    def preview(
        file: FileArg,
        tenant: Annotated[
            str,
            typer.Option("--tenant", "-t", help="Tenant id the titles would belong to."),
        ] = "local",
        as_json: Annotated[
            bool,
            typer.Option("--json", help="Print the preview as JSON."),
        ] = False,
    ) -> None:
        """Show what importing a file would do.

        Parses, maps and validates every product. No existing titles are
        consulted, so conflicts are never reported here.

        [bold]Examples:[/]
          onixport preview feed.xml
          onixport preview feed.onix --json > preview.json
        """
        data = read_input_file(file)
        try:
            result = asyncio.run(build_import_preview(data, file.name, tenant))
        except OnixportError as e:
            print_error(f"{file.name}: {e.message}")
            raise typer.Exit(1) from e

        if as_json:
            typer.echo(result.model_dump_json(indent=2))
            return

        print_preview_table(result)
        print_import_issues(result.errors)
        console.print(
            f"[title]{result.valid_products}/{result.total_products} products importable[/]"
        )
        if result.unmapped_fields_summary:
            print_info(f"Not stored: {', '.join(result.unmapped_fields_summary)}")

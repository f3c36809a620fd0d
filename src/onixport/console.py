"""Rich console output for the onixport CLI.

Theme, console instances, one-line status helpers and the tables used to
show validation issues and import previews.
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from onixport.importer.schemas import ImportPreview
from onixport.onix.schemas import ImportIssue, ValidationIssue

# =============================================================================
# Theme Configuration
# =============================================================================

ONIXPORT_THEME = Theme(
    {
        # Status colors
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        # Text styles
        "title": "bold white",
        "dim": "dim",
        "highlight": "bold magenta",
        # Domain styles
        "isbn": "yellow",
        "code": "bold blue",
        "path": "cyan",
        "version": "bold green",
        "hint": "dim italic",
    }
)

# Primary console for normal output
console = Console(theme=ONIXPORT_THEME, stderr=False)

# Error console for stderr output
err_console = Console(theme=ONIXPORT_THEME, stderr=True)


# =============================================================================
# Messages
# =============================================================================


def print_success(message: str) -> None:
    """Print a success message with checkmark.

    Example:
        >>> print_success("Export is valid")
          ✓ Export is valid
    """
    console.print(f"  [success]✓[/] {message}")


def print_error(message: str) -> None:
    console.print(f"  [error]✗[/] {message}")


def print_warning(message: str) -> None:
    console.print(f"  [warning]![/] {message}")


def print_info(message: str) -> None:
    """Print an info message.

    Example:
        >>> print_info("Detected ONIX 3.1")
          → Detected ONIX 3.1
    """
    console.print(f"  [info]→[/] {message}")


# =============================================================================
# Tables
# =============================================================================


def print_validation_issues(
    issues: Iterable[ValidationIssue], title: str = "Validation Errors"
) -> None:
    """Print structural/business validation issues as a table."""
    issues = list(issues)
    if not issues:
        console.print("[dim]No validation errors[/]")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Type", style="dim")
    table.add_column("Code", style="code")
    table.add_column("Path", style="path")
    table.add_column("Message")
    table.add_column("Actual", style="warning")

    for issue in issues:
        table.add_row(issue.type, issue.code, issue.path, issue.message, issue.actual or "-")
    console.print(table)


def print_import_issues(issues: Iterable[ImportIssue], title: str = "Import Errors") -> None:
    issues = list(issues)
    if not issues:
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("#", style="dim", width=4)
    table.add_column("Reference")
    table.add_column("Code", style="code")
    table.add_column("Message")

    for issue in issues:
        index = "-" if issue.product_index is None else str(issue.product_index)
        table.add_row(index, issue.record_reference or "-", issue.code or "-", issue.message)
    console.print(table)


def print_preview_table(preview: ImportPreview) -> None:
    """Print one row per product in an import preview.

    Example:
        >>> print_preview_table(preview)
        ┏━━━━┳━━━━━━━━━━━━━━━━┳━━━━━━━━━━━━━━━━━┳━━━━━━━━━━━━━━━┳━━━━━━━━┓
        ┃ #  ┃ ISBN           ┃ Title           ┃ Contributors  ┃ Status ┃
        ┡━━━━╇━━━━━━━━━━━━━━━━╇━━━━━━━━━━━━━━━━━╇━━━━━━━━━━━━━━━╇━━━━━━━━┩
        │ 0  │ 9780306406157  │ The Test Book   │ Jane Doe      │ ok     │
        └────┴────────────────┴─────────────────┴───────────────┴────────┘
    """
    if not preview.products:
        console.print("[dim]No products found[/]")
        return

    table = Table(
        title=f"ONIX {preview.version} import preview",
        show_header=True,
        header_style="bold",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("ISBN", style="isbn")
    table.add_column("Title")
    table.add_column("Contributors")
    table.add_column("Status", justify="center")

    for product in preview.products:
        if not product.is_importable:
            state = f"[error]{len(product.validation_errors)} errors[/]"
        elif product.has_conflict:
            state = "[warning]conflict[/]"
        else:
            state = "[success]ok[/]"
        table.add_row(
            str(product.index),
            product.isbn or "-",
            product.title or "[dim]untitled[/]",
            ", ".join(c.name for c in product.contributors) or "-",
            state,
        )
    console.print(table)

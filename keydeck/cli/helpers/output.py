"""Helper functions for CLI output formatting with Rich integration."""

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from keydeck.core.errors import (
    CircularReferenceError,
    LayoutJSONError,
    LayoutParseError,
    LayoutValidationError,
    MaxDepthExceededError,
)
from keydeck.layout.models import Key, Layout, PanelRef, Widget
from keydeck.layout.results import ValidationIssue


def _console(stderr: bool = False) -> Console:
    return Console(stderr=stderr, highlight=False, soft_wrap=True)


def print_success_message(message: str) -> None:
    """Print a success message with a checkmark."""
    _console().print(f"[green]✓[/green] {escape(message)}")


def print_error_message(message: str) -> None:
    """Print an error message with an X symbol to stderr."""
    _console(stderr=True).print(f"[red]✗[/red] {escape(message)}")


def print_warning_message(message: str) -> None:
    """Print a warning message with icon."""
    _console().print(f"[yellow]![/yellow] {escape(message)}")


def print_issue(issue: ValidationIssue) -> None:
    """Print one validation issue in its standard text form."""
    style = "red" if issue.is_error else "yellow"
    text = escape(str(issue))
    _console().print(f"  [{style}]{text}[/{style}]")


def print_json(data: Any) -> None:
    """Print data as indented JSON without Rich markup processing."""
    print(json.dumps(data, indent=2, ensure_ascii=False))


def issue_to_dict(issue: ValidationIssue) -> dict[str, Any]:
    return issue.model_dump(mode="json")


def error_to_dict(error: LayoutParseError) -> dict[str, Any]:
    """Describe a parse failure as JSON-ready data."""
    data: dict[str, Any] = {
        "type": type(error).__name__,
        "message": error.message,
        "file": error.file_path,
        "suggestion": error.suggestion,
    }
    if isinstance(error, LayoutJSONError):
        data["line"] = error.line
        data["column"] = error.column
    elif isinstance(error, LayoutValidationError):
        data["issues"] = [issue_to_dict(issue) for issue in error.issues]
    elif isinstance(error, CircularReferenceError):
        data["chain"] = error.chain
    elif isinstance(error, MaxDepthExceededError):
        data["path"] = error.path
        data["max_depth"] = error.max_depth
    return data


def build_layout_tree(layout: Layout) -> Tree:
    """Build a Rich tree of panels, rows and cells."""
    tree = Tree(f"[bold]{escape(layout.name)}[/bold] v{escape(layout.version)}")
    for panel_id, panel in layout.panels.items():
        marker = " (default)" if panel_id == layout.default_panel_id else ""
        panel_node = tree.add(f"[cyan]panel[/cyan] {escape(panel_id)}{marker}")
        for row_idx, row in enumerate(panel.rows):
            labels = []
            for cell in row.cells:
                if isinstance(cell, Key):
                    labels.append(escape(cell.label))
                elif isinstance(cell, Widget):
                    labels.append(f"<{escape(cell.widget_type)}>")
                elif isinstance(cell, PanelRef):
                    labels.append(f"-> {escape(cell.panel_id)}")
            panel_node.add(f"row {row_idx}: " + " | ".join(labels))
    return tree


def print_layout_tree(layout: Layout) -> None:
    _console().print(build_layout_tree(layout))


__all__ = [
    "build_layout_tree",
    "error_to_dict",
    "issue_to_dict",
    "print_error_message",
    "print_issue",
    "print_json",
    "print_layout_tree",
    "print_success_message",
    "print_warning_message",
]

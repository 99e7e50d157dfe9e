"""Layout CLI commands: validate and show."""

import logging
from pathlib import Path
from typing import Annotated

import typer

from keydeck.cli.decorators import handle_errors
from keydeck.cli.helpers.output import (
    error_to_dict,
    issue_to_dict,
    print_error_message,
    print_issue,
    print_json,
    print_layout_tree,
    print_success_message,
    print_warning_message,
)
from keydeck.config.settings import ParserSettings
from keydeck.core.errors import LayoutParseError, LayoutValidationError
from keydeck.layout.parser import LayoutParser
from keydeck.layout.results import ParseResult
from keydeck.layout.serializer import dump_layout_json


logger = logging.getLogger(__name__)

layout_app = typer.Typer(
    name="layout",
    help="""Layout commands.

  validate    - Parse a layout, resolve inheritance and report issues
  show        - Print the fully resolved layout
""",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

LayoutFileArgument = Annotated[
    Path,
    typer.Argument(help="Layout JSON file", dir_okay=False),
]


def _settings_from_context(ctx: typer.Context, strict: bool = False) -> ParserSettings:
    app_context = ctx.obj
    settings: ParserSettings = (
        app_context.settings if app_context is not None else ParserSettings()
    )
    if strict and not settings.strict:
        settings = settings.model_copy(update={"strict": True})
    return settings


def _print_validation_failure(error: LayoutParseError) -> None:
    if isinstance(error, LayoutValidationError):
        print_error_message(f"Layout validation failed with {len(error.issues)} issue(s)")
        for issue in error.issues:
            print_issue(issue)
    else:
        print_error_message(str(error))


@handle_errors
def validate(
    ctx: typer.Context,
    layout_file: LayoutFileArgument,
    format: Annotated[
        str,
        typer.Option("--format", help="Output format: text, json"),
    ] = "text",
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Treat warnings as errors"),
    ] = False,
) -> None:
    """Validate a layout file and every layout it inherits from.

    Examples:
        keydeck layout validate my-layout.json
        keydeck layout validate my-layout.json --strict --format json
    """
    parser = LayoutParser(settings=_settings_from_context(ctx, strict))

    try:
        result: ParseResult = parser.parse_file(layout_file)
    except LayoutParseError as e:
        logger.debug("Validation of %s failed: %s", layout_file, type(e).__name__)
        if format == "json":
            print_json({"valid": False, "error": error_to_dict(e)})
        else:
            _print_validation_failure(e)
        raise typer.Exit(1) from e

    if format == "json":
        print_json(
            {
                "valid": True,
                "layout": result.layout.name,
                "warnings": [issue_to_dict(issue) for issue in result.warnings],
            }
        )
        return

    print_success_message(f"Layout '{result.layout.name}' is valid")
    if result.has_warnings:
        print_warning_message(f"{result.warning_count} warning(s):")
        for issue in result.warnings:
            print_issue(issue)


@handle_errors
def show(
    ctx: typer.Context,
    layout_file: LayoutFileArgument,
    format: Annotated[
        str,
        typer.Option("--format", help="Output format: json, tree"),
    ] = "json",
) -> None:
    """Show the fully resolved layout.

    Examples:
        keydeck layout show my-layout.json
        keydeck layout show my-layout.json --format tree
    """
    if format not in ("json", "tree"):
        print_error_message(f"Unknown format '{format}', use 'json' or 'tree'")
        raise typer.Exit(1)

    result = LayoutParser(settings=_settings_from_context(ctx)).parse_file(layout_file)

    if format == "tree":
        print_layout_tree(result.layout)
    else:
        typer.echo(dump_layout_json(result.layout))


layout_app.command()(validate)
layout_app.command()(show)


def register_commands(app: typer.Typer) -> None:
    """Register layout commands with the main app.

    Args:
        app: The main Typer app
    """
    app.add_typer(layout_app, name="layout")


__all__ = ["layout_app", "register_commands", "show", "validate"]

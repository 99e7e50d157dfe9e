"""Main CLI application for keydeck."""

import logging
import sys
from importlib.metadata import distribution
from typing import Annotated

import typer

from keydeck.cli.decorators.error_handling import print_stack_trace_if_verbose
from keydeck.cli.helpers.output import print_error_message
from keydeck.config.settings import ParserSettings, load_settings
from keydeck.core.errors import ConfigError
from keydeck.core.logging import setup_logging


__all__ = ["AppContext", "app", "main", "__version__"]


__version__ = distribution("keydeck").version

logger = logging.getLogger(__name__)


class AppContext:
    """Application context for storing shared state."""

    def __init__(
        self,
        verbose: int = 0,
        log_file: str | None = None,
        config_file: str | None = None,
    ):
        """Initialize AppContext.

        Args:
            verbose: Verbosity level
            log_file: Path to log file
            config_file: Path to configuration file

        Raises:
            ConfigError: If the configuration file is invalid
        """
        self.verbose = verbose
        self.log_file = log_file
        self.config_file = config_file
        self.settings: ParserSettings = load_settings(config_file)


app = typer.Typer(
    name="keydeck",
    help=f"""Keydeck keyboard layout compiler v{__version__}

Parses declarative keyboard layouts (Layout -> Panels -> Rows -> Cells),
resolves layout inheritance and reports every structural issue at once.

Common workflows:
  • Validate a layout:   keydeck layout validate layout.json
  • Show resolved model: keydeck layout show layout.json --format tree""",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity (-v=INFO, -vv=DEBUG)",
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging (equivalent to -vv)"),
    ] = False,
    log_file: Annotated[
        str | None, typer.Option("--log-file", help="Log to file")
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("-c", "--config", help="Path to configuration file"),
    ] = None,
    version: Annotated[
        bool, typer.Option("--version", help="Show version and exit")
    ] = False,
) -> None:
    """Keydeck keyboard layout compiler."""
    if version:
        print(f"keydeck v{__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit()

    try:
        app_context = AppContext(
            verbose=verbose, log_file=log_file, config_file=config_file
        )
    except ConfigError as e:
        print_error_message(str(e))
        raise typer.Exit(1) from e
    ctx.obj = app_context

    # Set log level based on verbosity, debug flag, or config
    log_level = logging.WARNING
    if debug:
        log_level = logging.DEBUG
    elif verbose == 1:
        log_level = logging.INFO
    elif verbose >= 2:
        log_level = logging.DEBUG
    elif log_file is None:
        log_level = app_context.settings.get_log_level_int()

    setup_logging(level=log_level, log_file=log_file)
    logger.debug("keydeck v%s starting with settings %s", __version__, app_context.settings)


def main() -> int:
    """Main CLI entry point."""
    exit_code = 0

    try:
        from keydeck.cli.commands import register_all_commands

        register_all_commands(app)

        app()

    except SystemExit as e:
        # Capture SystemExit code (normal CLI exit)
        exit_code = e.code if isinstance(e.code, int) else 0

    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        print_stack_trace_if_verbose()
        exit_code = 1

    return exit_code


if __name__ == "__main__":
    sys.exit(main())

"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from ftclean import __version__
from ftclean.cli.commands import config, delete, find, history, lists
from ftclean.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="ftclean",
    help="Select and safely clean up ftrack asset versions and media.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"ftclean version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route log records to stderr through Rich (DEBUG when verbose)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
    # Connection pool chatter is noise even when verbose
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output (debug logging, including queries).",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    project: Annotated[
        str | None,
        typer.Option(
            "--project",
            "-P",
            help="Restrict to a project (name or id). Overrides the config file.",
        ),
    ] = None,
) -> None:
    """ftclean - Select and safely clean up ftrack asset versions and media.

    Every deletion is previewed first; nothing is removed without
    --execute and a confirmation.
    """
    configure_logging(verbose and not quiet)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["project"] = project


# Register commands
app.add_typer(find.app, name="find")
app.add_typer(lists.app, name="lists")
app.add_typer(delete.app, name="delete")
app.add_typer(history.app, name="history")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()

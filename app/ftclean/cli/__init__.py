"""CLI package for ftclean.

This package contains the Typer application and all subcommands.
"""

from ftclean.cli.main import app

__all__ = ["app"]

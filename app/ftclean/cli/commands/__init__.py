"""CLI commands for ftclean.

This package contains all subcommand implementations.
"""

from ftclean.cli.commands import config, delete, find, history, lists

__all__ = ["config", "delete", "find", "history", "lists"]

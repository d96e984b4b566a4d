"""Console helpers shared by the CLI commands."""

from ftclean.utils.formatting import (
    console,
    create_table,
    err_console,
    format_role,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "create_table",
    "err_console",
    "format_role",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]

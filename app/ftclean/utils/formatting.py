"""Shared Rich consoles and message helpers.

Results go to ``console`` (stdout) so they can be piped; warnings and errors
go to ``err_console`` (stderr).
"""

import sys

from rich.console import Console
from rich.table import Table

from ftclean.core.theme import get_theme
from ftclean.models.entity import ComponentRole

_ROLE_STYLES = {
    ComponentRole.ORIGINAL: "role.original",
    ComponentRole.ENCODED_HIGH: "role.encoded",
    ComponentRole.ENCODED_LOW: "role.encoded",
}


def _make_console(stderr: bool = False) -> Console:
    # Hex theme colours need truecolor; let Rich detect non-interactive output.
    stream = sys.stderr if stderr else sys.stdout
    color_system = "truecolor" if stream.isatty() else None
    return Console(theme=get_theme(), stderr=stderr, color_system=color_system)


console = _make_console()
err_console = _make_console(stderr=True)


def create_table(title: str) -> Table:
    """Create a zebra-striped table with the themed header and border."""
    return Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )


def format_role(role: ComponentRole | None) -> str:
    """Render a component role as themed markup; ``-`` for entity rows."""
    if role is None:
        return "[muted]-[/]"
    return f"[{_ROLE_STYLES.get(role, 'role.other')}]{role.value}[/]"


def print_info(message: str) -> None:
    console.print(f"[info]{message}[/]")


def print_success(message: str) -> None:
    console.print(f"[success]{message}[/]")


def print_warning(message: str) -> None:
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    err_console.print(f"[error]Error:[/] {message}")

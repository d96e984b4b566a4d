"""Lists command implementation.

Shows the lists available in the current project scope.
"""

import typer

from ftclean.cli.types import fail, open_connection
from ftclean.remote.errors import RemoteError
from ftclean.remote.lists import ListResolver
from ftclean.utils.formatting import console, create_table, print_info

app = typer.Typer(
    help="Show lists available for selection.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def lists(ctx: typer.Context) -> None:
    """Show lists, grouped by category.

    Use a list name or id with ``--list`` in ``find`` and ``delete``.
    """
    if ctx.invoked_subcommand is not None:
        return

    conn = open_connection(ctx)
    try:
        entity_lists = ListResolver(
            conn.reader, conn.scope, conn.config.selection.entity_type
        ).fetch_lists()
    except RemoteError as e:
        raise fail(f"Cannot fetch lists: {e}") from e

    if not entity_lists:
        print_info("No lists found.")
        return

    table = create_table("Lists")
    table.add_column("Category", style="muted")
    table.add_column("Name", style="entity.label")
    table.add_column("Project")
    table.add_column("ID", style="muted", no_wrap=True)
    for entity_list in entity_lists:
        table.add_row(
            entity_list.category or "-",
            entity_list.name,
            entity_list.project or "-",
            entity_list.id,
        )
    console.print(table)

"""The ``ftclean history`` command: the audit trail of executed deletions."""

from datetime import datetime
from typing import Annotated

import typer

from ftclean.core.deletion import format_bytes
from ftclean.core.state import StateManager
from ftclean.models.history import HistoryEntry
from ftclean.utils.formatting import console, create_table, print_error, print_info

app = typer.Typer(
    name="history",
    help="View history of executed deletions.",
    invoke_without_command=True,
)

_LABELS_SHOWN = 3


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum number of entries to show."),
    ] = 20,
    since: Annotated[
        str | None,
        typer.Option("--since", help="Only entries on or after this date (YYYY-MM-DD)."),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Show executed deletions, newest first.

    Previews are never recorded. Each entry is one real run with the asset
    versions it touched and the amount of data removed.

    Examples:
        ftclean history -n 50
        ftclean history --since 2026-01-01 --json
    """
    if ctx.invoked_subcommand is not None:
        return

    cutoff: str | None = None
    if since:
        try:
            cutoff = datetime.strptime(since, "%Y-%m-%d").date().isoformat()
        except ValueError:
            print_error(f"Invalid date format: {since}. Use YYYY-MM-DD.")
            raise typer.Exit(code=1) from None

    entries = StateManager().get_history(limit=limit)
    if cutoff is not None:
        entries = [e for e in entries if e.timestamp[:10] >= cutoff]

    if not entries:
        print_info("No history entries found.")
        return

    if json_output:
        console.print_json(data=[entry.to_dict() for entry in entries])
        return

    table = create_table("Deletion History")
    table.add_column("ID", style="muted")
    table.add_column("Timestamp")
    table.add_column("Action")
    table.add_column("Asset Versions", style="entity.label")
    table.add_column("Size", style="entity.size", justify="right")
    table.add_column("OK?")
    for entry in entries:
        table.add_row(
            entry.id[:8],
            _short_timestamp(entry.timestamp),
            entry.action_type.value,
            _summarize_labels(entry),
            format_bytes(entry.total_size),
            "[success]Yes[/]" if entry.success else "[error]No[/]",
        )
    console.print(table)


def _summarize_labels(entry: HistoryEntry) -> str:
    shown = [item.label or item.entity_id[:8] for item in entry.items[:_LABELS_SHOWN]]
    hidden = len(entry.items) - len(shown)
    text = ", ".join(shown)
    return f"{text} (+{hidden} more)" if hidden > 0 else text


def _short_timestamp(iso_timestamp: str) -> str:
    return datetime.fromisoformat(iso_timestamp).strftime("%Y-%m-%d %H:%M")

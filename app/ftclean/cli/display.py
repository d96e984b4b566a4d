"""Shared Rich display functions for selections and deletion reports.

Provides reusable table builders and summary printers used by the
``find`` and ``delete`` commands.
"""

from collections.abc import Sequence

from rich.table import Table

from ftclean.core.deletion import format_bytes
from ftclean.core.selection import SelectionPager
from ftclean.models.deletion import (
    DeletionResult,
    DeletionSummary,
    DryRunReportItem,
    ItemState,
    ReportOperation,
)
from ftclean.utils.formatting import console, create_table, format_role, print_success


def create_candidates_table(pager: SelectionPager) -> Table:
    """Create a table for the current page of a selection.

    Args:
        pager: Pager positioned on the page to show.

    Returns:
        Rich Table with ID, Label, Status, User and Date columns.
    """
    title = f"Selection (page {pager.page + 1}/{pager.page_count})"
    if pager.filter_text:
        title += f" - filter: {pager.filter_text}"

    table = create_table(title)
    table.add_column("ID", style="muted", no_wrap=True)
    table.add_column("Label", style="entity.label")
    table.add_column("Status")
    table.add_column("User")
    table.add_column("Date", style="muted")

    for item in pager.current_page():
        meta = item.metadata
        table.add_row(
            item.id,
            item.label,
            str(meta.get("status") or "-"),
            str(meta.get("user") or "-"),
            str(meta.get("date") or "-")[:10],
        )
    return table


def create_report_table(report: Sequence[DryRunReportItem], dry_run: bool) -> Table:
    """Create a table of planned deletions.

    Entity rows are shown in bold with their total size; component rows
    are indented beneath them.

    Args:
        report: Report rows.
        dry_run: Whether this is a preview (changes table title).

    Returns:
        Rich Table configured for report display.
    """
    table = create_table("Planned Deletions (Dry Run)" if dry_run else "Planned Deletions")
    table.add_column("Operation", no_wrap=True)
    table.add_column("Entity / Component")
    table.add_column("Shot")
    table.add_column("Role", no_wrap=True)
    table.add_column("Size", style="entity.size", justify="right")

    for row in report:
        if row.operation == ReportOperation.DELETE_ENTITY:
            table.add_row(
                "[planned]entity[/]",
                f"[entity.label]{row.entity_label or row.entity_id}[/]",
                row.parent_name or "-",
                "",
                format_bytes(row.size),
            )
        else:
            table.add_row(
                "[planned]component[/]",
                f"  {row.entity_label or row.entity_id} / {row.component_name or row.component_id}",
                row.parent_name or "-",
                format_role(row.component_role),
                format_bytes(row.size),
            )
    return table


def print_summary(summary: DeletionSummary, dry_run: bool) -> None:
    """Print deletion counts.

    Args:
        summary: Run summary.
        dry_run: Whether the counts are planned or actual.
    """
    verb = "Would delete" if dry_run else "Deleted"
    parts: list[str] = []
    if summary.entities_deleted:
        parts.append(f"{summary.entities_deleted} version(s)")
    parts.append(f"{summary.components_deleted} component(s)")
    parts.append(format_bytes(summary.bytes_deleted))
    console.print(f"\n{verb}: " + ", ".join(parts))

    if summary.failures:
        console.print(f"[error]{len(summary.failures)} failure(s):[/error]")
        for failure in summary.failures:
            console.print(f"  [error]{failure.id}[/error] [muted]{failure.reason}[/muted]")


def print_results_summary(result: DeletionResult) -> None:
    """Print the outcome of a real run.

    Args:
        result: Result of an executed run.
    """
    print_summary(result.summary, dry_run=False)

    skipped = sum(1 for state in result.states.values() if state == ItemState.SKIPPED)
    if result.cancelled:
        console.print(f"[warning]Cancelled: {skipped} item(s) not processed.[/warning]")
    elif not result.summary.failures:
        print_success("All deletions completed successfully.")

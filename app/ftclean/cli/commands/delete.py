"""Delete commands.

``ftclean delete entities`` removes whole asset versions;
``ftclean delete components`` removes a subset of their media. Both show a
preview first and only delete with ``--execute``.
"""

import signal
from collections.abc import Callable
from pathlib import Path
from types import FrameType
from typing import Annotated

import typer

from ftclean.cli.display import create_report_table, print_results_summary, print_summary
from ftclean.cli.types import (
    AttrOption,
    Connection,
    FilterTextOption,
    IdsOption,
    ListOption,
    NewerThanOption,
    OlderThanOption,
    PatternOption,
    StatusOption,
    UserOption,
    criteria_from_options,
    fail,
    make_pager,
    select,
)
from ftclean.core.deletion import DeletionOrchestrator
from ftclean.core.report import write_report_csv
from ftclean.core.state import StateManager, build_history_entry
from ftclean.models.deletion import ComponentDeletionChoice, DeletionResult
from ftclean.models.history import HistoryActionType
from ftclean.remote.errors import RemoteError
from ftclean.utils.formatting import console, print_info, print_warning

app = typer.Typer(
    help="Delete asset versions or their components (preview by default).",
    no_args_is_help=True,
)

# Typed confirmation required when more than one entity is affected
CONFIRM_PHRASE = "DELETE NOW"

ExecuteOption = Annotated[
    bool,
    typer.Option("--execute", help="Actually delete. Without it only a preview is shown."),
]
YesOption = Annotated[
    bool,
    typer.Option("--yes", "-y", help="Skip confirmation prompt."),
]
ExportOption = Annotated[
    Path | None,
    typer.Option("--export", "-e", help="Write the preview report to a CSV file (or directory)."),
]


class _StopOnInterrupt:
    """Turn Ctrl-C into a request to stop between batches."""

    def __init__(self) -> None:
        self.stopped = False
        self._previous: object = None

    def __enter__(self) -> "_StopOnInterrupt":
        self._previous = signal.signal(signal.SIGINT, self._handle)
        return self

    def __exit__(self, *exc_info: object) -> None:
        signal.signal(signal.SIGINT, self._previous)  # type: ignore[arg-type]

    def _handle(self, signum: int, frame: FrameType | None) -> None:
        self.stopped = True
        print_warning("Stopping after the current batch...")

    def should_continue(self) -> bool:
        return not self.stopped


@app.command()
def entities(
    ctx: typer.Context,
    ids: IdsOption = None,
    patterns: PatternOption = None,
    list_name: ListOption = None,
    status: StatusOption = None,
    user: UserOption = None,
    older_than: OlderThanOption = None,
    newer_than: NewerThanOption = None,
    attrs: AttrOption = None,
    filter_text: FilterTextOption = None,
    execute: ExecuteOption = False,
    yes: YesOption = False,
    export_path: ExportOption = None,
) -> None:
    """Delete whole asset versions, including all their components.

    Examples:
        ftclean delete entities --pattern "SH01*" --status Omitted
        ftclean delete entities --list "Old Dailies" --export ./reports
        ftclean delete entities --id 1b2c...,3d4e... --execute
    """
    conn, ids_to_delete = _select_ids(
        ctx, ids, patterns, list_name, status, user, older_than, newer_than, attrs, filter_text
    )
    orchestrator = _orchestrator(conn)

    preview = _run(lambda: orchestrator.delete_entities(ids_to_delete))
    _show_preview(preview, export_path)
    if not execute:
        print_info("Preview only. Re-run with --execute to delete.")
        return
    if preview.summary.entities_deleted == 0:
        print_info("Nothing to delete.")
        return

    _confirm(preview.summary.entities_deleted, "asset version(s)", yes)
    with _StopOnInterrupt() as interrupt:
        result = _run(
            lambda: orchestrator.delete_entities(
                ids_to_delete, dry_run=False, should_continue=interrupt.should_continue
            )
        )
    _finish(result, HistoryActionType.DELETE_ENTITIES, conn, "ftclean delete entities")


@app.command()
def components(
    ctx: typer.Context,
    ids: IdsOption = None,
    patterns: PatternOption = None,
    list_name: ListOption = None,
    status: StatusOption = None,
    user: UserOption = None,
    older_than: OlderThanOption = None,
    newer_than: NewerThanOption = None,
    attrs: AttrOption = None,
    filter_text: FilterTextOption = None,
    choice: Annotated[
        ComponentDeletionChoice,
        typer.Option("--choice", "-c", help="Which components to delete.", case_sensitive=False),
    ] = ComponentDeletionChoice.ALL,
    execute: ExecuteOption = False,
    yes: YesOption = False,
    export_path: ExportOption = None,
) -> None:
    """Delete components of asset versions, keeping the versions.

    The thumbnail component is never deleted.

    Examples:
        ftclean delete components --pattern "SH01*" --choice original_only
        ftclean delete components --list "Delivered" --choice encoded_only --execute
    """
    conn, ids_to_clean = _select_ids(
        ctx, ids, patterns, list_name, status, user, older_than, newer_than, attrs, filter_text
    )
    orchestrator = _orchestrator(conn)
    choices = {entity_id: choice for entity_id in ids_to_clean}

    preview = _run(lambda: orchestrator.delete_components(choices))
    _show_preview(preview, export_path)
    if not execute:
        print_info("Preview only. Re-run with --execute to delete.")
        return
    if preview.summary.components_deleted == 0:
        print_info("Nothing to delete.")
        return

    affected = len({row.entity_id for row in preview.report})
    _confirm(affected, f"asset version(s) ({preview.summary.components_deleted} components)", yes)
    with _StopOnInterrupt() as interrupt:
        result = _run(
            lambda: orchestrator.delete_components(
                choices, dry_run=False, should_continue=interrupt.should_continue
            )
        )
    _finish(result, HistoryActionType.DELETE_COMPONENTS, conn, "ftclean delete components")


# === Private helper functions ===


def _select_ids(
    ctx: typer.Context,
    ids: list[str] | None,
    patterns: list[str] | None,
    list_name: str | None,
    status: list[str] | None,
    user: list[str] | None,
    older_than: str | None,
    newer_than: str | None,
    attrs: list[str] | None,
    filter_text: str | None,
) -> tuple[Connection, list[str]]:
    """Resolve the selection and pick every candidate passing the text filter."""
    criteria = criteria_from_options(status, user, older_than, newer_than, attrs)
    conn, result = select(
        ctx, ids=ids, patterns=patterns, list_name=list_name, criteria=criteria
    )

    pager = make_pager(result, conn.config.selection.page_size, filter_text)
    pager.select_all()
    selection = pager.confirm()
    if selection.is_empty:
        print_info("No matching asset versions.")
        raise typer.Exit(code=0)
    return conn, selection.ids


def _orchestrator(conn: Connection) -> DeletionOrchestrator:
    return DeletionOrchestrator(
        conn.reader,
        conn.scope,
        conn.writer,
        entity_type=conn.config.selection.entity_type,
        settings=conn.config.deletion,
    )


def _run(operation: Callable[[], DeletionResult]) -> DeletionResult:
    """Run an orchestrator call, turning systemic failures into an exit."""
    try:
        return operation()
    except RemoteError as e:
        raise fail(f"Aborted: {e}") from e


def _show_preview(preview: DeletionResult, export_path: Path | None) -> None:
    if preview.report:
        console.print(create_report_table(preview.report, dry_run=True))
    print_summary(preview.summary, dry_run=True)

    if export_path is not None:
        try:
            written = write_report_csv(export_path, preview.summary, preview.report)
        except OSError as e:
            raise fail(f"Failed to export: {e}") from e
        print_info(f"Report exported to {written}")


def _confirm(count: int, noun: str, yes: bool) -> None:
    """Ask for confirmation; several entities require the typed phrase."""
    if yes:
        return
    if count > 1:
        answer = typer.prompt(f'\nThis deletes {count} {noun}. Type "{CONFIRM_PHRASE}" to proceed')
        confirmed = answer.strip() == CONFIRM_PHRASE
    else:
        confirmed = typer.confirm(f"\nDelete {count} {noun}?", default=False)
    if not confirmed:
        print_info("Aborted.")
        raise typer.Exit(code=0)


def _finish(
    result: DeletionResult,
    action_type: HistoryActionType,
    conn: Connection,
    command: str,
) -> None:
    """Show results, record them to history, and exit non-zero on failures."""
    print_results_summary(result)

    entry = build_history_entry(
        result,
        action_type,
        metadata={
            "command": command,
            "server": conn.session.server_url,
            "project": conn.scope.project_name,
        },
    )
    if entry is not None:
        try:
            StateManager().record_action(entry)
            print_info("Deletions recorded to history.")
        except (OSError, RuntimeError) as e:
            print_warning(f"Could not record to history: {e}")

    if result.summary.failures or result.cancelled:
        raise typer.Exit(code=1)

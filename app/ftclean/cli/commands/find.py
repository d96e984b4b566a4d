"""Find command implementation.

Resolves a selection and shows it page by page, without changing anything.
"""

import json
from typing import Annotated

import typer

from ftclean.cli.display import create_candidates_table
from ftclean.cli.types import (
    AttrOption,
    FilterTextOption,
    IdsOption,
    ListOption,
    NewerThanOption,
    OlderThanOption,
    PageSizeOption,
    PatternOption,
    StatusOption,
    UserOption,
    criteria_from_options,
    make_pager,
    select,
)
from ftclean.utils.formatting import console, print_info

app = typer.Typer(
    help="Find asset versions without changing anything.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def find(
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
    page: Annotated[
        int,
        typer.Option("--page", min=1, help="Page to show."),
    ] = 1,
    page_size: PageSizeOption = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output all (filtered) results as JSON."),
    ] = False,
) -> None:
    """Find asset versions by id, shot pattern, list, or filters.

    Examples:
        ftclean find --pattern "SH01*"
        ftclean find --pattern "/^SH0[1-3]0$/" --filter approved
        ftclean find --list "Client Review"
        ftclean find --status Omitted --older-than 2025-01-01
    """
    criteria = criteria_from_options(status, user, older_than, newer_than, attrs)
    conn, result = select(
        ctx, ids=ids, patterns=patterns, list_name=list_name, criteria=criteria
    )

    pager = make_pager(result, page_size or conn.config.selection.page_size, filter_text)
    if not pager.visible:
        print_info("No matching asset versions.")
        return

    if json_output:
        data = [
            {"id": item.id, "label": item.label, **dict(item.metadata)} for item in pager.visible
        ]
        console.print_json(json.dumps(data))
        return

    pager.go_to(page - 1)
    console.print(create_candidates_table(pager))
    console.print(f"\n[dim]{len(pager.visible)} of {len(result.items)} asset version(s)[/dim]")

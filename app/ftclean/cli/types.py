"""Shared types and utilities for CLI commands.

This module provides the selection options shared by ``find`` and
``delete``, and helpers that open a connection and run a selection.
"""

from dataclasses import dataclass
from typing import Annotated, Any

import typer
from pydantic import ValidationError

from ftclean.core.config import AppConfig, ConfigError, load_config
from ftclean.core.patterns import BROAD_MATCH_COUNT, analyze_pattern
from ftclean.core.scope import ProjectNotFoundError, ProjectScope, resolve_project
from ftclean.core.selection import InvalidSelectionError, SelectionPager, SelectionResolver
from ftclean.models.filters import (
    CustomAttributeFilter,
    DateFilter,
    FilterCriteria,
    StatusFilter,
    UserFilter,
)
from ftclean.models.selection import SelectionResult
from ftclean.remote.client import FtrackReader, FtrackSession, FtrackWriter
from ftclean.remote.errors import RemoteError
from ftclean.utils.formatting import print_error, print_warning

# =============================================================================
# Shared options
# =============================================================================

IdsOption = Annotated[
    list[str] | None,
    typer.Option("--id", "-i", help="Entity id (repeatable, or comma separated)."),
]
PatternOption = Annotated[
    list[str] | None,
    typer.Option(
        "--pattern",
        "-p",
        help="Shot name pattern: exact, wildcard (SH01*) or regex (/^SH0[1-3]$/). Repeatable.",
    ),
]
ListOption = Annotated[
    str | None,
    typer.Option("--list", "-l", help="Select the members of a list (name or id)."),
]
StatusOption = Annotated[
    list[str] | None,
    typer.Option("--status", help="Status name (repeatable)."),
]
UserOption = Annotated[
    list[str] | None,
    typer.Option("--user", help="Publishing username (repeatable)."),
]
OlderThanOption = Annotated[
    str | None,
    typer.Option("--older-than", help="Published before this date (YYYY-MM-DD)."),
]
NewerThanOption = Annotated[
    str | None,
    typer.Option("--newer-than", help="Published on or after this date (YYYY-MM-DD)."),
]
AttrOption = Annotated[
    list[str] | None,
    typer.Option(
        "--attr",
        help="Custom attribute filter: key=value, key!=value, key~text, key or !key.",
    ),
]
FilterTextOption = Annotated[
    str | None,
    typer.Option("--filter", "-f", help="Narrow results by label/description text."),
]
PageSizeOption = Annotated[
    int | None,
    typer.Option("--page-size", min=1, help="Results per page."),
]


# =============================================================================
# Connection
# =============================================================================


@dataclass
class Connection:
    """Everything a command needs to talk to the server."""

    config: AppConfig
    session: FtrackSession
    reader: FtrackReader
    writer: FtrackWriter
    scope: ProjectScope


def fail(message: str) -> typer.Exit:
    """Print an error and return the exit to raise."""
    print_error(message)
    return typer.Exit(code=1)


def open_connection(ctx: typer.Context) -> Connection:
    """Load configuration, connect, and resolve the project scope.

    The HTTP session is closed when the command context closes.

    Raises:
        typer.Exit: If configuration is incomplete or the project is unknown.
    """
    obj: dict[str, Any] = ctx.obj or {}
    try:
        config = load_config()
        session = FtrackSession.from_config(config.connection)
        ctx.call_on_close(session.close)
        reader = FtrackReader(session)
        scope = resolve_project(reader, obj.get("project") or config.project)
    except ConfigError as e:
        raise fail(str(e)) from e
    except ProjectNotFoundError as e:
        raise fail(str(e)) from e
    except RemoteError as e:
        raise fail(f"Cannot connect: {e}") from e

    return Connection(
        config=config,
        session=session,
        reader=reader,
        writer=FtrackWriter(session),
        scope=scope,
    )


# =============================================================================
# Selection
# =============================================================================


def parse_attr(text: str) -> CustomAttributeFilter:
    """Parse a ``--attr`` value into a custom attribute filter.

    Raises:
        ValueError: If the key is empty.
    """
    if "!=" in text:
        key, value = text.split("!=", 1)
        return CustomAttributeFilter(key=key.strip(), op="neq", value=value)
    if "=" in text:
        key, value = text.split("=", 1)
        return CustomAttributeFilter(key=key.strip(), op="eq", value=value)
    if "~" in text:
        key, value = text.split("~", 1)
        return CustomAttributeFilter(key=key.strip(), op="contains", value=value)
    if text.startswith("!"):
        return CustomAttributeFilter(key=text[1:].strip(), op="false")
    return CustomAttributeFilter(key=text.strip(), op="true")


def build_criteria(
    status: list[str] | None,
    user: list[str] | None,
    older_than: str | None,
    newer_than: str | None,
    attrs: list[str] | None,
) -> FilterCriteria | None:
    """Build filter criteria from CLI options, or None if none was given.

    Raises:
        ValidationError: If a date or attribute filter is malformed.
    """
    date_filter: DateFilter | None = None
    if older_than and newer_than:
        date_filter = DateFilter.model_validate(
            {"kind": "between", "from": newer_than, "to": older_than}
        )
    elif older_than:
        date_filter = DateFilter.model_validate({"kind": "older", "to": older_than})
    elif newer_than:
        date_filter = DateFilter.model_validate({"kind": "newer", "from": newer_than})

    criteria = FilterCriteria(
        status=StatusFilter(names=status) if status else None,
        user=UserFilter(usernames=user) if user else None,
        date=date_filter,
        custom=[parse_attr(a) for a in attrs or []],
    )
    return None if criteria.is_empty else criteria


def select(
    ctx: typer.Context,
    *,
    ids: list[str] | None,
    patterns: list[str] | None,
    list_name: str | None,
    criteria: FilterCriteria | None,
) -> tuple[Connection, SelectionResult]:
    """Validate selection input, connect, and run exactly one selection mode.

    Input is validated before any connection is made.

    Returns:
        The open connection and the selection result.

    Raises:
        typer.Exit: If no mode or several modes are given, input is invalid,
            or the server fails.
    """
    modes = [bool(ids), bool(patterns), bool(list_name), criteria is not None]
    if sum(modes) != 1:
        raise fail(
            "Choose exactly one of --id, --pattern, --list or filter options "
            "(--status, --user, --older-than, --newer-than, --attr)."
        )

    parsed_ids: list[str] = []
    if ids:
        try:
            parsed_ids = SelectionResolver.parse_ids(ids)
        except InvalidSelectionError as e:
            raise fail(str(e)) from e

    conn = open_connection(ctx)
    resolver = SelectionResolver(
        conn.reader,
        conn.scope,
        entity_type=conn.config.selection.entity_type,
        search_field=conn.config.selection.search_field,
    )
    try:
        if parsed_ids:
            result = resolver.select_by_ids(parsed_ids)
            if result.missing_ids:
                print_warning(f"Not found: {', '.join(result.missing_ids)}")
        elif patterns:
            result = resolver.search(patterns)
            if result.is_empty:
                suggestions = resolver.suggest(patterns)
                if suggestions:
                    print_warning(f"No matches. Try: {', '.join(suggestions)}")
            else:
                _warn_broad_patterns(patterns, result)
        elif list_name:
            result = resolver.select_from_list(list_name)
        else:
            assert criteria is not None
            result = resolver.select_by_filter(criteria)
    except InvalidSelectionError as e:
        raise fail(str(e)) from e
    except RemoteError as e:
        raise fail(f"Selection failed: {e}") from e
    return conn, result


def criteria_from_options(
    status: list[str] | None,
    user: list[str] | None,
    older_than: str | None,
    newer_than: str | None,
    attrs: list[str] | None,
) -> FilterCriteria | None:
    """Like :func:`build_criteria`, exiting with an error on invalid input."""
    try:
        return build_criteria(status, user, older_than, newer_than, attrs)
    except (ValidationError, ValueError) as e:
        raise fail(f"Invalid filter: {e}") from e


def make_pager(result: SelectionResult, page_size: int, filter_text: str | None) -> SelectionPager:
    """Create a pager over a selection, with the text filter applied."""
    pager = SelectionPager(result, page_size=page_size)
    if filter_text:
        pager.apply_filter(filter_text)
    return pager


def _warn_broad_patterns(patterns: list[str], result: SelectionResult) -> None:
    """Warn about patterns that matched more shots than anyone would review."""
    shots = list(dict.fromkeys(item.metadata.get("shot_name", "") for item in result.items))
    for pattern in (p.strip() for p in patterns if p.strip()):
        analysis = analyze_pattern(pattern, shots)
        if analysis.match_count <= BROAD_MATCH_COUNT:
            continue
        print_warning(
            f"Pattern {pattern!r} matches {analysis.match_count} shots "
            f"(e.g. {', '.join(analysis.examples)}). Add characters to narrow it."
        )

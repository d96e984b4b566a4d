"""Compile filter criteria into a query predicate.

All literal values pass through :func:`quote` so that every predicate the
tool emits is escaped the same way.
"""

from collections.abc import Iterable

from ftclean.models.filters import (
    CustomAttributeFilter,
    DateFilter,
    FilterCriteria,
    StatusFilter,
    UserFilter,
)


def quote(value: str) -> str:
    """Render a string literal for the query grammar.

    Args:
        value: Raw string value.

    Returns:
        Double-quoted literal with backslashes and quotes escaped.
    """
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def in_list(field: str, values: Iterable[str]) -> str:
    """Render an ``in (...)`` clause.

    Args:
        field: Attribute path (e.g., "status.name").
        values: Literal values.

    Returns:
        Clause such as ``status.name in ("Approved", "In Progress")``.
    """
    return f"{field} in ({', '.join(quote(v) for v in values)})"


def _literal(value: str | int | float | bool) -> str:
    """Render a custom attribute comparison value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    return quote(value)


def _status_clause(status: StatusFilter) -> str | None:
    if status.ids:
        return in_list("status.id", status.ids)
    if status.names:
        return in_list("status.name", status.names)
    return None


def _user_clause(user: UserFilter) -> str | None:
    if user.ids:
        return in_list("user.id", user.ids)
    if user.usernames:
        return in_list("user.username", user.usernames)
    return None


def _date_clause(date_filter: DateFilter) -> str | None:
    """Render the date group; a missing required bound drops the group."""
    lower = date_filter.from_date.isoformat() if date_filter.from_date else None
    upper = date_filter.to_date.isoformat() if date_filter.to_date else None

    if date_filter.kind == "older":
        return f"date < {quote(upper)}" if upper else None
    if date_filter.kind == "newer":
        return f"date >= {quote(lower)}" if lower else None
    if lower and upper:
        return f"date >= {quote(lower)} and date <= {quote(upper)}"
    return None


def _custom_clause(custom: CustomAttributeFilter) -> str:
    key = f"key is {quote(custom.key)}"
    if custom.op == "true":
        return f"custom_attributes any ({key} and value is true)"
    if custom.op == "false":
        return f"custom_attributes any ({key} and value is false)"

    # Validated on construction: value operators always carry a value
    assert custom.value is not None
    if custom.op == "contains":
        return f"custom_attributes any ({key} and value like {quote(f'%{custom.value}%')})"
    clause = f"custom_attributes any ({key} and value is {_literal(custom.value)})"
    if custom.op == "neq":
        return f"not ({clause})"
    return clause


def build_where(criteria: FilterCriteria) -> str:
    """Compile filter criteria into a single predicate.

    Groups are joined with ``and`` in the order status, user, date, custom.
    Id lists take precedence over name lists within a group.

    Args:
        criteria: Validated filter criteria.

    Returns:
        Predicate text without a leading ``where``, or an empty string when
        no group contributes a clause.

    Example:
        >>> build_where(FilterCriteria(status=StatusFilter(names=["Approved"])))
        'status.name in ("Approved")'
    """
    clauses: list[str | None] = []
    if criteria.status is not None:
        clauses.append(_status_clause(criteria.status))
    if criteria.user is not None:
        clauses.append(_user_clause(criteria.user))
    if criteria.date is not None:
        clauses.append(_date_clause(criteria.date))
    clauses.extend(_custom_clause(custom) for custom in criteria.custom)

    return " and ".join(clause for clause in clauses if clause)

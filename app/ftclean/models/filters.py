"""Structured filter criteria for entity selection.

This module defines the Pydantic models describing status, user, date, and
custom attribute filters. Construction validates input shape; compiling
the criteria into a query predicate is done by
:func:`ftclean.core.filters.build_where`.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DateKind = Literal["older", "newer", "between"]
CustomOperator = Literal["eq", "neq", "contains", "true", "false"]

# Operators that compare against an explicit value
_VALUE_OPERATORS: frozenset[str] = frozenset({"eq", "neq", "contains"})


class StatusFilter(BaseModel):
    """Filter by status.

    Attributes:
        ids: Status ids. Takes precedence over names when both are given.
        names: Status names (e.g., "Approved").
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    ids: Annotated[list[str], Field(default_factory=list, description="Status ids")]
    names: Annotated[list[str], Field(default_factory=list, description="Status names")]


class UserFilter(BaseModel):
    """Filter by publishing user.

    Attributes:
        ids: User ids. Takes precedence over usernames when both are given.
        usernames: Usernames.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    ids: Annotated[list[str], Field(default_factory=list, description="User ids")]
    usernames: Annotated[list[str], Field(default_factory=list, description="Usernames")]


class DateFilter(BaseModel):
    """Filter by publish date.

    ``older`` uses ``to``, ``newer`` uses ``from``, ``between`` uses both.
    A bound that the chosen kind needs but is missing makes the filter
    contribute nothing.

    Attributes:
        kind: Comparison kind.
        from_date: Lower bound (inclusive), alias ``from``.
        to_date: Upper bound, alias ``to``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    kind: Annotated[DateKind, Field(description="Comparison kind")]
    from_date: Annotated[date | None, Field(alias="from", description="Lower bound")] = None
    to_date: Annotated[date | None, Field(alias="to", description="Upper bound")] = None

    @field_validator("from_date", "to_date", mode="before")
    @classmethod
    def validate_iso_date(cls, v: object) -> object:
        """Accept only YYYY-MM-DD strings (or date objects)."""
        if v is None or isinstance(v, date):
            return v
        if not isinstance(v, str):
            msg = "date must be a YYYY-MM-DD string"
            raise ValueError(msg)
        try:
            return date.fromisoformat(v.strip())
        except ValueError:
            msg = f"invalid date '{v}', expected YYYY-MM-DD"
            raise ValueError(msg) from None


class CustomAttributeFilter(BaseModel):
    """Filter on a custom attribute value.

    Attributes:
        key: Custom attribute key (exact).
        op: Operator (eq, neq, contains, true, false).
        value: Comparison value, required for eq/neq/contains.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    key: Annotated[str, Field(min_length=1, description="Custom attribute key")]
    op: Annotated[CustomOperator, Field(description="Operator")]
    value: Annotated[str | int | float | bool | None, Field(description="Value")] = None

    @model_validator(mode="after")
    def validate_value_present(self) -> CustomAttributeFilter:
        """Require a value for operators that compare against one."""
        if self.op in _VALUE_OPERATORS and self.value is None:
            msg = f"operator '{self.op}' requires a value for key '{self.key}'"
            raise ValueError(msg)
        return self


class FilterCriteria(BaseModel):
    """All filter groups for one selection.

    Each group is optional. Multiple custom attribute filters are combined
    with AND.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: StatusFilter | None = None
    user: UserFilter | None = None
    date: DateFilter | None = None
    custom: Annotated[
        list[CustomAttributeFilter],
        Field(default_factory=list, description="Custom attribute filters"),
    ]

    @property
    def is_empty(self) -> bool:
        """Check if no filter group was supplied."""
        return self.status is None and self.user is None and self.date is None and not self.custom

"""Selection models shared by every acquisition mode.

Direct ids, pattern searches, filters, and list membership all produce the
same :class:`SelectionCandidate` rows wrapped in a :class:`SelectionResult`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ftclean.models.entity import lookup


class PatternType(str, Enum):
    """Shape of a selection pattern.

    Attributes:
        EXACT: Plain string, compared for equality.
        WILDCARD: Glob using ``*``, ``?`` or ``[...]`` classes.
        REGEX: Regular expression delimited by slashes (``/.../``).
    """

    EXACT = "exact"
    WILDCARD = "wildcard"
    REGEX = "regex"


@dataclass(frozen=True, slots=True)
class MatchResult:
    """A candidate value matched by a pattern.

    Attributes:
        value: The matched candidate string.
        score: Match quality between 0.0 and 1.0 (higher is better).
        match_type: Shape of the pattern that produced the match.
    """

    value: str
    score: float
    match_type: PatternType

    def __post_init__(self) -> None:
        """Validate match data after initialization."""
        if not (0.0 <= self.score <= 1.0):
            msg = f"Score must be between 0.0 and 1.0, got {self.score}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class SelectionCandidate:
    """An entity offered for selection.

    Attributes:
        id: Entity id.
        label: Display label ("<shot> - <asset> v<version>").
        description: Secondary text shown next to the label.
        metadata: Extra fields (shot, asset, version, status, user, date).
    """

    id: str
    label: str
    description: str = ""
    metadata: Mapping[str, Any] = field(default_factory=lambda: {})

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> SelectionCandidate:
        """Project an AssetVersion query row into a SelectionCandidate.

        Args:
            row: Query result row.

        Returns:
            SelectionCandidate instance.
        """
        shot_name = lookup(row, "asset.parent.name") or "Unknown"
        asset_name = lookup(row, "asset.name") or "Unknown"
        version = lookup(row, "version") or "?"
        status = lookup(row, "status.name") or None
        user = lookup(row, "user.username") or None

        return cls(
            id=lookup(row, "id"),
            label=f"{shot_name} - {asset_name} v{version}",
            description=f"Status: {status or 'Unknown'} | User: {user or 'Unknown'}",
            metadata={
                "shot_name": shot_name,
                "asset_name": asset_name,
                "version": version,
                "status": status,
                "user": user,
                "date": lookup(row, "date") or None,
            },
        )


@dataclass(frozen=True, slots=True)
class SelectionResult:
    """Outcome of a selection.

    ``cancelled`` distinguishes a user abort from a search that genuinely
    matched nothing; both have no items.

    Attributes:
        items: Selected candidates.
        cancelled: Whether the selection was aborted.
        search_used: Whether pattern search produced the items.
        patterns: Patterns used for the search, if any.
        missing_ids: Requested ids that were not found (direct-id mode).
    """

    items: tuple[SelectionCandidate, ...] = ()
    cancelled: bool = False
    search_used: bool = False
    patterns: tuple[str, ...] = ()
    missing_ids: tuple[str, ...] = ()

    @property
    def ids(self) -> list[str]:
        """Ids of the selected items, in order."""
        return [item.id for item in self.items]

    @property
    def is_empty(self) -> bool:
        """Check if nothing was selected."""
        return not self.items

    @classmethod
    def aborted(cls) -> SelectionResult:
        """Create a cancelled, empty result."""
        return cls(cancelled=True)

"""Data models for ftclean.

This module exports the core data structures used throughout the application.
"""

from ftclean.models.deletion import (
    ComponentDeletionChoice,
    DeletionFailure,
    DeletionResult,
    DeletionSummary,
    DryRunReportItem,
    ItemState,
    PlanItem,
    ReportOperation,
)
from ftclean.models.entity import Component, ComponentLocation, ComponentRole, ManagedEntity
from ftclean.models.filters import (
    CustomAttributeFilter,
    DateFilter,
    FilterCriteria,
    StatusFilter,
    UserFilter,
)
from ftclean.models.history import (
    HistoryActionType,
    HistoryEntry,
    HistoryItem,
    create_history_entry,
)
from ftclean.models.selection import (
    MatchResult,
    PatternType,
    SelectionCandidate,
    SelectionResult,
)

__all__ = [
    "Component",
    "ComponentDeletionChoice",
    "ComponentLocation",
    "ComponentRole",
    "CustomAttributeFilter",
    "DateFilter",
    "DeletionFailure",
    "DeletionResult",
    "DeletionSummary",
    "DryRunReportItem",
    "FilterCriteria",
    "HistoryActionType",
    "HistoryEntry",
    "HistoryItem",
    "ItemState",
    "ManagedEntity",
    "MatchResult",
    "PatternType",
    "PlanItem",
    "ReportOperation",
    "SelectionCandidate",
    "SelectionResult",
    "StatusFilter",
    "UserFilter",
    "create_history_entry",
]

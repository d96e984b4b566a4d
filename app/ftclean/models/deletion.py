"""Deletion plan, report, and summary models.

This module defines the dry-run report rows, the aggregated summary, and
the per-id state machine used by the deletion orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ftclean.models.entity import Component, ComponentRole, ManagedEntity


class ComponentDeletionChoice(str, Enum):
    """Which components to delete from an entity.

    Attributes:
        ALL: Every component except the thumbnail.
        ORIGINAL_ONLY: Only components classified as original media.
        ENCODED_ONLY: Only review encodes (high and low).
    """

    ALL = "all"
    ORIGINAL_ONLY = "original_only"
    ENCODED_ONLY = "encoded_only"


class ReportOperation(str, Enum):
    """Kind of planned operation a report row describes."""

    DELETE_ENTITY = "delete_entity"
    DELETE_COMPONENT = "delete_component"


class ItemState(str, Enum):
    """Lifecycle of a single requested id during a deletion run.

    Attributes:
        PENDING: Not processed yet.
        FETCHED: Entity detail and components loaded.
        CLASSIFIED: Deletion targets computed.
        REPORTED: Report rows emitted.
        EXECUTED: Destructive call(s) succeeded.
        FAILED: Fetch or execution failed; see the failure reason.
        SKIPPED: Not executed because the run was cancelled.
    """

    PENDING = "pending"
    FETCHED = "fetched"
    CLASSIFIED = "classified"
    REPORTED = "reported"
    EXECUTED = "executed"
    FAILED = "failed"
    SKIPPED = "skipped"


# Allowed transitions of the per-id state machine.
_TRANSITIONS: dict[ItemState, frozenset[ItemState]] = {
    ItemState.PENDING: frozenset({ItemState.FETCHED, ItemState.FAILED}),
    ItemState.FETCHED: frozenset({ItemState.CLASSIFIED, ItemState.FAILED}),
    ItemState.CLASSIFIED: frozenset({ItemState.REPORTED, ItemState.FAILED}),
    ItemState.REPORTED: frozenset({ItemState.EXECUTED, ItemState.FAILED, ItemState.SKIPPED}),
    ItemState.EXECUTED: frozenset(),
    ItemState.FAILED: frozenset(),
    ItemState.SKIPPED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class DryRunReportItem:
    """One planned operation, for audit and export.

    Attributes:
        operation: Entity-level or component-level deletion.
        entity_id: Id of the asset version.
        entity_label: Display label of the asset version.
        parent_name: Shot (or other parent) name.
        status: Status name of the asset version.
        owner: Username of the publishing user.
        component_id: Component id (component rows only).
        component_name: Component name (component rows only).
        component_role: Classified role (component rows only).
        size: Bytes affected by this row.
        locations: Resource identifiers affected by this row.
    """

    operation: ReportOperation
    entity_id: str
    entity_label: str | None = None
    parent_name: str | None = None
    status: str | None = None
    owner: str | None = None
    component_id: str | None = None
    component_name: str | None = None
    component_role: ComponentRole | None = None
    size: int = 0
    locations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output.

        Returns:
            Dictionary representation of the report row.
        """
        return {
            "operation": self.operation.value,
            "entity_id": self.entity_id,
            "entity_label": self.entity_label,
            "parent_name": self.parent_name,
            "status": self.status,
            "owner": self.owner,
            "component_id": self.component_id,
            "component_name": self.component_name,
            "component_role": self.component_role.value if self.component_role else None,
            "size": self.size,
            "locations": list(self.locations),
        }


@dataclass(frozen=True, slots=True)
class DeletionFailure:
    """A requested id that could not be analysed or deleted.

    Attributes:
        id: The requested entity id.
        reason: Human-readable failure reason.
    """

    id: str
    reason: str


@dataclass(frozen=True, slots=True)
class DeletionSummary:
    """Aggregate counts for a deletion run.

    In a dry run the counts describe what would be deleted; in a real run
    they describe what was actually deleted.

    Attributes:
        entities_deleted: Number of whole entities deleted.
        components_deleted: Number of components deleted.
        bytes_deleted: Total bytes deleted.
        failures: Failures in the order they occurred.
    """

    entities_deleted: int = 0
    components_deleted: int = 0
    bytes_deleted: int = 0
    failures: tuple[DeletionFailure, ...] = ()

    @property
    def failed_ids(self) -> list[str]:
        """Ids of failed items, in order."""
        return [f.id for f in self.failures]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output.

        Returns:
            Dictionary representation of the summary.
        """
        return {
            "entities_deleted": self.entities_deleted,
            "components_deleted": self.components_deleted,
            "bytes_deleted": self.bytes_deleted,
            "failures": [{"id": f.id, "reason": f.reason} for f in self.failures],
        }


@dataclass(slots=True)
class PlanItem:
    """Mutable per-id record driven through the deletion state machine.

    Attributes:
        entity_id: Requested entity id.
        state: Current state.
        entity: Fetched entity snapshot (from FETCHED on).
        targets: Components to delete (from CLASSIFIED on).
        executed: Components deleted so far in a real run.
        reason: Failure reason when FAILED.
    """

    entity_id: str
    state: ItemState = ItemState.PENDING
    entity: ManagedEntity | None = None
    targets: tuple[Component, ...] = ()
    executed: list[Component] = field(default_factory=lambda: [])
    reason: str | None = None

    def advance(self, new_state: ItemState) -> None:
        """Move to a new state.

        Args:
            new_state: Target state.

        Raises:
            RuntimeError: If the transition is not allowed.
        """
        if new_state not in _TRANSITIONS[self.state]:
            msg = f"Illegal transition for {self.entity_id}: {self.state.value} -> {new_state.value}"
            raise RuntimeError(msg)
        self.state = new_state

    def fail(self, reason: str) -> None:
        """Mark this item as failed with a reason."""
        self.advance(ItemState.FAILED)
        self.reason = reason

    @property
    def is_active(self) -> bool:
        """Check if this item is still eligible for execution."""
        return self.state == ItemState.REPORTED

    @property
    def target_bytes(self) -> int:
        """Bytes of all deletion targets."""
        return sum(c.size for c in self.targets)


@dataclass(frozen=True, slots=True)
class DeletionResult:
    """Report, summary, and final per-id states of a deletion run.

    Attributes:
        report: Planned operations, one row per entity or component.
        summary: Aggregate counts and failures.
        states: Final state for each requested id.
        executed_components: Components actually deleted, per entity id
            (empty in a dry run).
        dry_run: Whether this was a preview.
        cancelled: Whether execution stopped early on request.
    """

    report: tuple[DryRunReportItem, ...]
    summary: DeletionSummary
    states: dict[str, ItemState] = field(default_factory=lambda: {})
    executed_components: dict[str, tuple[Component, ...]] = field(default_factory=lambda: {})
    dry_run: bool = True
    cancelled: bool = False

"""Deletion orchestration.

Every run has two phases. Analysis fetches each requested entity, decides
what would be deleted, and emits report rows. Execution, only when
``dry_run`` is False, sends the destructive calls in small sequential
batches. Each requested id moves through an explicit state machine
(:class:`~ftclean.models.deletion.PlanItem`), so one id failing never
affects the others.

Failure handling:
- Entity not found / call rejected: recorded as a failure for that id.
- Transport or authentication outage during analysis: propagates and
  aborts the run before anything is deleted.
- Any remote error during execution: recorded for that id; the run goes on.
"""

import logging
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TypeVar

from ftclean.core.components import identify_role, select_for_deletion
from ftclean.core.config import DeletionSettings
from ftclean.core.filters import quote
from ftclean.core.scope import ProjectScope
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
from ftclean.models.entity import Component, ManagedEntity
from ftclean.remote.base import EntityReader, EntityWriter, delete_operation
from ftclean.remote.errors import EntityNotFoundError, RemoteCallFailure, RemoteError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DETAIL_FIELDS = ", ".join(
    [
        "id",
        "version",
        "date",
        "thumbnail_id",
        "asset.name",
        "asset.parent.name",
        "status.name",
        "user.username",
        "components.id",
        "components.name",
        "components.file_type",
        "components.size",
        "components.component_locations.location.name",
        "components.component_locations.resource_identifier",
    ]
)


def _chunks(items: Sequence[T], size: int) -> list[Sequence[T]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def format_bytes(size: int, decimals: int = 2) -> str:
    """Format a byte count as a human-readable string.

    Args:
        size: Size in bytes.
        decimals: Maximum number of decimals.

    Returns:
        String such as "0 B", "512 B" or "1.5 GB".
    """
    if size <= 0:
        return "0 B"
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024:
            return f"{int(value)} B" if unit == "B" else f"{round(value, decimals):g} {unit}"
        value /= 1024
    return f"{round(value, decimals):g} TB"


class DeletionOrchestrator:
    """Plans and executes entity and component deletions.

    Runs are previews unless ``dry_run=False`` is passed explicitly. A
    preview never touches the writer; it may even be omitted.

    Example:
        >>> orchestrator = DeletionOrchestrator(reader, scope)
        >>> preview = orchestrator.delete_entities(["<id>"])
        >>> preview.summary.bytes_deleted
    """

    def __init__(
        self,
        reader: EntityReader,
        scope: ProjectScope,
        writer: EntityWriter | None = None,
        *,
        entity_type: str = "AssetVersion",
        settings: DeletionSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            reader: Query capability.
            scope: Project scope applied to every fetch.
            writer: Mutating capability, required for real runs only.
            entity_type: Type of the entities being deleted.
            settings: Batch sizes and pauses.
            sleep: Pause function, injectable for tests.
        """
        self._reader = reader
        self._scope = scope
        self._writer = writer
        self._entity_type = entity_type
        self._settings = settings or DeletionSettings()
        self._sleep = sleep

    def fetch_entity(self, entity_id: str) -> ManagedEntity:
        """Fetch an entity with its components.

        Args:
            entity_id: Entity id.

        Returns:
            Entity snapshot.

        Raises:
            EntityNotFoundError: If no entity with that id is in scope.
            RemoteCallFailure: If the query is rejected.
            TransportError: If the server cannot be reached.
        """
        rows = self._reader.query(
            self._scope.scoped(
                f"select {DETAIL_FIELDS} from {self._entity_type} where id is {quote(entity_id)}"
            )
        )
        if not rows:
            raise EntityNotFoundError(self._entity_type, entity_id)
        return ManagedEntity.from_row(rows[0])

    # =========================================================================
    # Entry points
    # =========================================================================

    def delete_entities(
        self,
        ids: Iterable[str],
        *,
        dry_run: bool = True,
        should_continue: Callable[[], bool] | None = None,
    ) -> DeletionResult:
        """Delete whole entities (and with them all their components).

        Args:
            ids: Entity ids; duplicates are processed once.
            dry_run: Preview only. Must be False to delete anything.
            should_continue: Checked between batches; returning False
                stops the run and leaves unreached ids SKIPPED.

        Returns:
            DeletionResult with one entity row plus one row per component
            for every analysed id.

        Raises:
            ValueError: If a real run is requested without a writer.
            TransportError: If the server becomes unreachable during analysis.
        """
        self._require_writer(dry_run)
        plan, failures = self._analyse(
            ids,
            lambda entity_id, entity: entity.components,
        )
        report = [row for item in plan if item.is_active for row in self._entity_rows(item)]

        cancelled = False
        executed: dict[str, tuple[Component, ...]] = {}
        if not dry_run:
            cancelled = self._execute_entities(plan, failures, should_continue)
            executed = {
                i.entity_id: tuple(i.executed) for i in plan if i.state == ItemState.EXECUTED
            }
            entities = [i for i in plan if i.state == ItemState.EXECUTED]
            summary = DeletionSummary(
                entities_deleted=len(entities),
                components_deleted=sum(len(i.executed) for i in entities),
                bytes_deleted=sum(c.size for i in entities for c in i.executed),
                failures=tuple(failures),
            )
        else:
            planned = [i for i in plan if i.state == ItemState.REPORTED]
            summary = DeletionSummary(
                entities_deleted=len(planned),
                components_deleted=sum(len(i.targets) for i in planned),
                bytes_deleted=sum(i.target_bytes for i in planned),
                failures=tuple(failures),
            )

        return self._result(plan, report, summary, executed, dry_run, cancelled)

    def delete_components(
        self,
        choices: Mapping[str, ComponentDeletionChoice],
        *,
        dry_run: bool = True,
        should_continue: Callable[[], bool] | None = None,
    ) -> DeletionResult:
        """Delete a subset of components from entities.

        The thumbnail component of each entity is never targeted.

        Args:
            choices: Entity id to which components to delete.
            dry_run: Preview only. Must be False to delete anything.
            should_continue: Checked between batches; returning False
                stops the run and leaves unreached ids SKIPPED.

        Returns:
            DeletionResult with one row per targeted component.
            ``entities_deleted`` is always 0.

        Raises:
            ValueError: If a real run is requested without a writer.
            TransportError: If the server becomes unreachable during analysis.
        """
        self._require_writer(dry_run)
        plan, failures = self._analyse(
            choices.keys(),
            lambda entity_id, entity: tuple(
                select_for_deletion(entity.components, choices[entity_id], entity.thumbnail_id)
            ),
        )
        report = [row for item in plan if item.is_active for row in self._component_rows(item)]

        cancelled = False
        executed: dict[str, tuple[Component, ...]] = {}
        if not dry_run:
            cancelled = self._execute_components(plan, failures, should_continue)
            executed = {i.entity_id: tuple(i.executed) for i in plan if i.executed}
            summary = DeletionSummary(
                components_deleted=sum(len(i.executed) for i in plan),
                bytes_deleted=sum(c.size for i in plan for c in i.executed),
                failures=tuple(failures),
            )
        else:
            planned = [i for i in plan if i.state == ItemState.REPORTED]
            summary = DeletionSummary(
                components_deleted=sum(len(i.targets) for i in planned),
                bytes_deleted=sum(i.target_bytes for i in planned),
                failures=tuple(failures),
            )

        return self._result(plan, report, summary, executed, dry_run, cancelled)

    # =========================================================================
    # Analysis
    # =========================================================================

    def _require_writer(self, dry_run: bool) -> None:
        if not dry_run and self._writer is None:
            msg = "A writer is required to execute deletions"
            raise ValueError(msg)

    def _analyse(
        self,
        ids: Iterable[str],
        classify: Callable[[str, ManagedEntity], Sequence[Component]],
    ) -> tuple[list[PlanItem], list[DeletionFailure]]:
        """Fetch and classify every id, isolating per-id failures."""
        plan = [PlanItem(entity_id) for entity_id in dict.fromkeys(ids)]
        failures: list[DeletionFailure] = []

        for item in plan:
            try:
                entity = self.fetch_entity(item.entity_id)
            except (EntityNotFoundError, RemoteCallFailure) as e:
                logger.warning("Cannot analyse %s: %s", item.entity_id, e)
                item.fail(str(e))
                failures.append(DeletionFailure(item.entity_id, str(e)))
                continue

            item.entity = entity
            item.advance(ItemState.FETCHED)
            item.targets = tuple(classify(item.entity_id, entity))
            item.advance(ItemState.CLASSIFIED)
            logger.debug(
                "%s: %d of %d component(s) targeted",
                item.entity_id,
                len(item.targets),
                len(entity.components),
            )
            item.advance(ItemState.REPORTED)

        return plan, failures

    def _entity_rows(self, item: PlanItem) -> list[DryRunReportItem]:
        entity = item.entity
        assert entity is not None
        rows = [
            DryRunReportItem(
                operation=ReportOperation.DELETE_ENTITY,
                entity_id=entity.id,
                entity_label=entity.label,
                parent_name=entity.parent_name,
                status=entity.status,
                owner=entity.owner,
                size=entity.total_size,
                locations=entity.resource_identifiers,
            )
        ]
        rows.extend(self._component_rows(item))
        return rows

    def _component_rows(self, item: PlanItem) -> list[DryRunReportItem]:
        entity = item.entity
        assert entity is not None
        return [
            DryRunReportItem(
                operation=ReportOperation.DELETE_COMPONENT,
                entity_id=entity.id,
                entity_label=entity.label,
                parent_name=entity.parent_name,
                status=entity.status,
                owner=entity.owner,
                component_id=component.id,
                component_name=component.name,
                component_role=identify_role(component),
                size=component.size,
                locations=component.resource_identifiers,
            )
            for component in item.targets
        ]

    # =========================================================================
    # Execution
    # =========================================================================

    def _keep_going(self, should_continue: Callable[[], bool] | None) -> bool:
        return should_continue is None or should_continue()

    def _execute_entities(
        self,
        plan: list[PlanItem],
        failures: list[DeletionFailure],
        should_continue: Callable[[], bool] | None,
    ) -> bool:
        """Delete active entities in batches. Returns True if cancelled."""
        assert self._writer is not None
        batches = _chunks([i for i in plan if i.is_active], self._settings.entity_batch_size)

        for index, batch in enumerate(batches):
            if index > 0:
                if not self._keep_going(should_continue):
                    self._skip(item for later in batches[index:] for item in later)
                    return True
                self._sleep(self._settings.entity_pause_ms / 1000)

            logger.info("Deleting batch %d/%d (%d entities)", index + 1, len(batches), len(batch))
            for item in batch:
                try:
                    self._writer.call([delete_operation(self._entity_type, item.entity_id)])
                except RemoteError as e:
                    logger.warning("Failed to delete %s: %s", item.entity_id, e)
                    item.fail(str(e))
                    failures.append(DeletionFailure(item.entity_id, str(e)))
                    continue
                item.executed = list(item.targets)
                item.advance(ItemState.EXECUTED)
        return False

    def _execute_components(
        self,
        plan: list[PlanItem],
        failures: list[DeletionFailure],
        should_continue: Callable[[], bool] | None,
    ) -> bool:
        """Delete targeted components in small calls. Returns True if cancelled."""
        assert self._writer is not None
        size = self._settings.component_batch_size
        first_call = True
        active = [i for i in plan if i.is_active]

        for position, item in enumerate(active):
            for batch in _chunks(item.targets, size):
                if not first_call:
                    if not self._keep_going(should_continue):
                        self._stop_partial(item, failures)
                        self._skip(active[position:])
                        return True
                    self._sleep(self._settings.component_pause_ms / 1000)
                first_call = False

                try:
                    self._writer.call([delete_operation("Component", c.id) for c in batch])
                except RemoteError as e:
                    logger.warning("Failed to delete components of %s: %s", item.entity_id, e)
                    item.fail(str(e))
                    failures.append(DeletionFailure(item.entity_id, str(e)))
                    break
                item.executed.extend(batch)
                logger.debug("%s: deleted %d component(s)", item.entity_id, len(batch))

            if item.is_active:
                item.advance(ItemState.EXECUTED)
        return False

    def _stop_partial(self, item: PlanItem, failures: list[DeletionFailure]) -> None:
        """Fail an entity whose components were only partly deleted when the run stopped."""
        if not item.executed:
            return
        reason = (
            f"Cancelled after deleting {len(item.executed)} of {len(item.targets)} component(s)"
        )
        logger.warning("%s: %s", item.entity_id, reason)
        item.fail(reason)
        failures.append(DeletionFailure(item.entity_id, reason))

    def _skip(self, items: Iterable[PlanItem]) -> None:
        skipped = 0
        for item in items:
            if item.is_active:
                item.advance(ItemState.SKIPPED)
                skipped += 1
        logger.warning("Run cancelled, %d item(s) skipped", skipped)

    def _result(
        self,
        plan: list[PlanItem],
        report: list[DryRunReportItem],
        summary: DeletionSummary,
        executed: dict[str, tuple[Component, ...]],
        dry_run: bool,
        cancelled: bool,
    ) -> DeletionResult:
        return DeletionResult(
            report=tuple(report),
            summary=summary,
            states={item.entity_id: item.state for item in plan},
            executed_components=executed,
            dry_run=dry_run,
            cancelled=cancelled,
        )

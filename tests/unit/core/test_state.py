"""Unit tests for StateManager.

Tests for history persistence and for turning deletion results into
history entries.
"""

import logging
from pathlib import Path

import pytest
from ftclean.core.state import StateManager, build_history_entry
from ftclean.models.deletion import (
    DeletionFailure,
    DeletionResult,
    DeletionSummary,
    DryRunReportItem,
    ItemState,
    ReportOperation,
)
from ftclean.models.entity import Component
from ftclean.models.history import (
    HistoryActionType,
    HistoryEntry,
    HistoryItem,
    create_history_entry,
)


class TestStateManager:
    """Tests for StateManager persistence."""

    @pytest.fixture
    def manager(self, tmp_path: Path) -> StateManager:
        return StateManager(state_dir=tmp_path / "state")

    @staticmethod
    def _entry(label: str) -> HistoryEntry:
        return create_history_entry(
            HistoryActionType.DELETE_ENTITIES,
            [HistoryItem(entity_id=f"id-{label}", label=label, size=10)],
        )

    def test_default_state_dir(self) -> None:
        assert StateManager().history_path.name == "history.jsonl"

    def test_empty_history(self, manager: StateManager) -> None:
        assert manager.get_history() == []

    def test_record_creates_file(self, manager: StateManager) -> None:
        manager.record_action(self._entry("a"))
        assert manager.history_path.exists()
        assert len(manager.history_path.read_text().splitlines()) == 1

    def test_newest_first_with_limit(self, manager: StateManager) -> None:
        for label in ("a", "b", "c"):
            manager.record_action(self._entry(label))

        entries = manager.get_history(limit=2)

        assert [e.items[0].label for e in entries] == ["c", "b"]

    def test_corrupt_lines_skipped(
        self, manager: StateManager, caplog: pytest.LogCaptureFixture
    ) -> None:
        manager.record_action(self._entry("a"))
        with manager.history_path.open("a") as f:
            f.write("{not json\n\n")
        manager.record_action(self._entry("b"))

        with caplog.at_level(logging.WARNING):
            entries = manager.get_history()

        assert [e.items[0].label for e in entries] == ["b", "a"]
        assert "corrupt history line 2" in caplog.text

    def test_get_entry_by_prefix(self, manager: StateManager) -> None:
        entry = self._entry("a")
        manager.record_action(entry)
        assert manager.get_entry_by_id(entry.id[:6]) == entry
        assert manager.get_entry_by_id("zzzz") is None


def _component(component_id: str, size: int) -> Component:
    return Component(id=component_id, name="main", size=size)


class TestBuildHistoryEntry:
    """Tests for build_history_entry."""

    def test_entities_run(self) -> None:
        result = DeletionResult(
            report=(
                DryRunReportItem(ReportOperation.DELETE_ENTITY, "A", entity_label="plate v1"),
                DryRunReportItem(ReportOperation.DELETE_ENTITY, "B", entity_label="plate v2"),
            ),
            summary=DeletionSummary(
                entities_deleted=1, failures=(DeletionFailure("B", "locked"),)
            ),
            states={"A": ItemState.EXECUTED, "B": ItemState.FAILED},
            executed_components={"A": (_component("c1", 100), _component("c2", 50))},
            dry_run=False,
        )

        entry = build_history_entry(result, HistoryActionType.DELETE_ENTITIES, {"command": "x"})

        assert entry is not None
        assert entry.items == (HistoryItem("A", "plate v1", components=2, size=150),)
        assert not entry.success
        assert entry.metadata["failures"] == [{"id": "B", "reason": "locked"}]
        assert entry.metadata["command"] == "x"

    def test_entity_without_components_is_recorded(self) -> None:
        result = DeletionResult(
            report=(DryRunReportItem(ReportOperation.DELETE_ENTITY, "A", entity_label="empty v1"),),
            summary=DeletionSummary(entities_deleted=1),
            states={"A": ItemState.EXECUTED},
            dry_run=False,
        )
        entry = build_history_entry(result, HistoryActionType.DELETE_ENTITIES)
        assert entry is not None
        assert entry.success
        assert entry.items[0].components == 0

    def test_components_run_records_partial_entities(self) -> None:
        """An entity that lost some components before failing is still recorded."""
        result = DeletionResult(
            report=(
                DryRunReportItem(ReportOperation.DELETE_COMPONENT, "A", entity_label="plate v1"),
            ),
            summary=DeletionSummary(components_deleted=1, failures=(DeletionFailure("A", "x"),)),
            states={"A": ItemState.FAILED, "C": ItemState.EXECUTED},
            executed_components={"A": (_component("a0", 7),)},
            dry_run=False,
        )

        entry = build_history_entry(result, HistoryActionType.DELETE_COMPONENTS)

        assert entry is not None
        assert [item.entity_id for item in entry.items] == ["A"]
        assert entry.total_size == 7

    def test_nothing_deleted(self) -> None:
        result = DeletionResult(
            report=(),
            summary=DeletionSummary(),
            states={"A": ItemState.SKIPPED},
            dry_run=False,
            cancelled=True,
        )
        assert build_history_entry(result, HistoryActionType.DELETE_ENTITIES) is None

    def test_cancelled_flag(self) -> None:
        result = DeletionResult(
            report=(),
            summary=DeletionSummary(entities_deleted=1),
            states={"A": ItemState.EXECUTED, "B": ItemState.SKIPPED},
            dry_run=False,
            cancelled=True,
        )
        entry = build_history_entry(result, HistoryActionType.DELETE_ENTITIES)
        assert entry is not None
        assert entry.metadata["cancelled"] is True
        assert not entry.success

"""State management for the deletion audit trail.

This module provides the StateManager class for persisting and querying
history entries in a JSONL file, and a helper that turns a finished
deletion run into a history entry.
"""

import json
import logging
from pathlib import Path
from typing import Any

from ftclean.core.paths import HISTORY_FILENAME, ensure_state_dir, get_state_dir
from ftclean.models.deletion import DeletionResult, ItemState
from ftclean.models.history import (
    HistoryActionType,
    HistoryEntry,
    HistoryItem,
    create_history_entry,
)

logger = logging.getLogger(__name__)


class StateManager:
    """Manages history state in JSONL file.

    Storage location: ~/.local/state/ftclean/history.jsonl

    Each line is a complete JSON object representing a HistoryEntry, which
    keeps writes append-only.
    """

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize StateManager.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/ftclean
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def history_path(self) -> Path:
        """Path to history.jsonl file."""
        return self._state_dir / HISTORY_FILENAME

    def record_action(self, entry: HistoryEntry) -> None:
        """Append an entry to the history file.

        Creates file and parent directories if they don't exist.

        Args:
            entry: The history entry to record.

        Raises:
            RuntimeError: If the state directory cannot be created.
            OSError: If the file cannot be written.
        """
        if self._state_dir == get_state_dir():
            ensure_state_dir()
        else:
            self._state_dir.mkdir(parents=True, exist_ok=True)

        with self.history_path.open(mode="a", encoding="utf-8") as f:
            f.write(entry.to_json_line() + "\n")
            f.flush()

    def get_history(self, limit: int | None = None) -> list[HistoryEntry]:
        """Read history entries, newest first.

        Corrupt lines are skipped with a warning.

        Args:
            limit: Maximum number of entries to return. If None, returns all.

        Returns:
            List of HistoryEntry, newest first. Empty if the file doesn't exist.
        """
        if not self.history_path.exists():
            return []

        entries: list[HistoryEntry] = []
        with self.history_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(HistoryEntry.from_json_line(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning("Skipping corrupt history line %d: %s", line_num, str(e))

        entries.reverse()
        if limit is not None:
            return entries[:limit]
        return entries

    def get_entry_by_id(self, entry_id: str) -> HistoryEntry | None:
        """Find an entry by full id or unique prefix.

        Args:
            entry_id: The entry ID (or a prefix of it).

        Returns:
            HistoryEntry if exactly one entry matches, None otherwise.
        """
        found = [e for e in self.get_history() if e.id.startswith(entry_id)]
        return found[0] if len(found) == 1 else None


def build_history_entry(
    result: DeletionResult,
    action_type: HistoryActionType,
    metadata: dict[str, Any] | None = None,
) -> HistoryEntry | None:
    """Summarize an executed deletion run as a history entry.

    Entities deleted outright are recorded, as are entities that lost at
    least one component (even if a later batch for them failed).

    Args:
        result: Result of a real (non-preview) run.
        action_type: Entity or component deletion.
        metadata: Extra context to store with the entry.

    Returns:
        HistoryEntry, or None when nothing was deleted.
    """
    labels: dict[str, str | None] = {}
    components: dict[str, int] = {}
    sizes: dict[str, int] = {}
    for row in result.report:
        labels.setdefault(row.entity_id, row.entity_label)

    for entity_id, done in result.executed_components.items():
        components[entity_id] = len(done)
        sizes[entity_id] = sum(c.size for c in done)

    items = [
        HistoryItem(
            entity_id=entity_id,
            label=labels.get(entity_id),
            components=components.get(entity_id, 0),
            size=sizes.get(entity_id, 0),
        )
        for entity_id, state in result.states.items()
        if components.get(entity_id)
        or (state == ItemState.EXECUTED and action_type == HistoryActionType.DELETE_ENTITIES)
    ]
    if not items:
        return None

    context: dict[str, Any] = dict(metadata or {})
    if result.summary.failures:
        context["failures"] = [{"id": f.id, "reason": f.reason} for f in result.summary.failures]
    if result.cancelled:
        context["cancelled"] = True

    return create_history_entry(
        action_type=action_type,
        items=items,
        success=not result.summary.failures and not result.cancelled,
        metadata=context,
    )

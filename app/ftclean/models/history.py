"""History entry model for the deletion audit trail.

Every executed (non-preview) deletion run is recorded as one entry listing
the entities it touched.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class HistoryActionType(str, Enum):
    """Type of action recorded in history.

    Attributes:
        DELETE_ENTITIES: Whole asset versions deleted.
        DELETE_COMPONENTS: Components deleted from asset versions.
    """

    DELETE_ENTITIES = "delete_entities"
    DELETE_COMPONENTS = "delete_components"


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """Single entity affected by an action.

    Attributes:
        entity_id: Id of the asset version.
        label: Display label at the time of deletion.
        components: Number of components deleted.
        size: Bytes deleted.
    """

    entity_id: str
    label: str | None = None
    components: int = 0
    size: int = 0

    def __post_init__(self) -> None:
        """Validate item data after initialization."""
        if not self.entity_id:
            msg = "Entity id cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        result: dict[str, Any] = {
            "entity_id": self.entity_id,
            "components": self.components,
            "size": self.size,
        }
        if self.label is not None:
            result["label"] = self.label
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryItem":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(
            entity_id=data["entity_id"],
            label=data.get("label"),
            components=int(data.get("components", 0)),
            size=int(data.get("size", 0)),
        )


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Record of a single deletion run.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the run finished (ISO 8601 format with timezone).
        action_type: Entity or component deletion.
        items: Entities affected by this run.
        success: Whether every requested item was deleted.
        metadata: Additional context (command, server, project, failures).
    """

    id: str
    timestamp: str
    action_type: HistoryActionType
    items: tuple[HistoryItem, ...]
    success: bool = True
    metadata: dict[str, Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.id:
            msg = "History entry ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)
        if not self.items:
            msg = "History entry must have at least one item"
            raise ValueError(msg)

    @property
    def total_size(self) -> int:
        """Bytes deleted across all items."""
        return sum(item.size for item in self.items)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage.

        Returns:
            Dictionary representation of the history entry.
        """
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "action_type": self.action_type.value,
            "items": [item.to_dict() for item in self.items],
            "success": self.success,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        """Deserialize from dictionary.

        Args:
            data: Dictionary containing entry data.

        Returns:
            HistoryEntry instance.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If action_type or item data is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            action_type=HistoryActionType(data["action_type"]),
            items=tuple(HistoryItem.from_dict(item) for item in data["items"]),
            success=data.get("success", True),
            metadata=data.get("metadata", {}),
        )

    def to_json_line(self) -> str:
        """Serialize to JSON line for JSONL storage (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> "HistoryEntry":
        """Deserialize from JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls.from_dict(json.loads(line.strip()))


def create_history_entry(
    action_type: HistoryActionType,
    items: list[HistoryItem],
    success: bool = True,
    metadata: dict[str, Any] | None = None,
) -> HistoryEntry:
    """Factory function to create a new HistoryEntry.

    Automatically generates a unique ID and current timestamp.

    Args:
        action_type: Type of action being recorded.
        items: Entities affected by this action.
        success: Whether the run completed without failures.
        metadata: Optional additional context.

    Returns:
        New HistoryEntry with auto-generated ID and timestamp.

    Raises:
        ValueError: If items list is empty.
    """
    if not items:
        msg = "Cannot create history entry with no items"
        raise ValueError(msg)

    return HistoryEntry(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        action_type=action_type,
        items=tuple(items),
        success=success,
        metadata=metadata or {},
    )

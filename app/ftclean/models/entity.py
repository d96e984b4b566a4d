"""Entity models projected from remote query rows.

This module defines the read-only snapshots of ftrack records used by the
selection and deletion pipeline. Query results arrive as loosely-typed
nested dictionaries; ``from_row`` is the only place those dictionaries are
interpreted.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ComponentRole(str, Enum):
    """Role of a media component, derived from naming conventions.

    Attributes:
        ORIGINAL: Source media as ingested (mov, exr, dpx, ...).
        ENCODED_HIGH: 1080p review encode (``ftrackreview-mp4-1080``).
        ENCODED_LOW: Standard review encode (``ftrackreview-mp4``).
        IMAGE: Still image such as a thumbnail or poster frame.
        OTHER: Anything that does not match a known convention.
    """

    ORIGINAL = "original"
    ENCODED_HIGH = "encoded-high"
    ENCODED_LOW = "encoded-low"
    IMAGE = "image"
    OTHER = "other"

    @property
    def is_encoded(self) -> bool:
        """Check if this role is one of the review encodes."""
        return self in (ComponentRole.ENCODED_HIGH, ComponentRole.ENCODED_LOW)


def _nested(row: Mapping[str, Any], path: str) -> Any:
    """Read a dotted attribute path (``asset.parent.name``) from a row."""
    value: Any = row
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def lookup(row: Mapping[str, Any], path: str) -> str:
    """Read a dotted attribute path from a row as a string.

    Args:
        row: Query result row.
        path: Dotted attribute path, e.g. ``asset.parent.name``.

    Returns:
        The value converted to ``str``, or an empty string when absent.
    """
    value = _nested(row, path)
    return "" if value is None else str(value)


@dataclass(frozen=True, slots=True)
class ComponentLocation:
    """Storage location holding a copy of a component.

    Attributes:
        name: Location name (e.g., "ftrack.server", "studio.disk").
        resource_identifier: Path or key of the file within the location.
    """

    name: str
    resource_identifier: str


@dataclass(frozen=True, slots=True)
class Component:
    """A stored media artifact attached to an asset version.

    Attributes:
        id: Component id.
        name: Component name (e.g., "main", "ftrackreview-mp4").
        file_type: File extension including the dot (e.g., ".mov").
        size: Size in bytes (0 when unknown).
        locations: Locations this component is stored in.
    """

    id: str
    name: str
    file_type: str = ""
    size: int = 0
    locations: tuple[ComponentLocation, ...] = ()

    def __post_init__(self) -> None:
        """Validate component data after initialization."""
        if not self.id:
            msg = "Component id cannot be empty"
            raise ValueError(msg)

    @property
    def resource_identifiers(self) -> tuple[str, ...]:
        """Non-empty resource identifiers across all locations."""
        return tuple(loc.resource_identifier for loc in self.locations if loc.resource_identifier)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Component:
        """Project a component row into a Component.

        Args:
            row: Component dictionary as returned inside an entity row.

        Returns:
            Component instance.

        Raises:
            ValueError: If the row has no id.
        """
        locations: list[ComponentLocation] = []
        for link in row.get("component_locations") or []:
            if not isinstance(link, Mapping):
                continue
            locations.append(
                ComponentLocation(
                    name=lookup(link, "location.name"),
                    resource_identifier=lookup(link, "resource_identifier"),
                )
            )

        return cls(
            id=lookup(row, "id"),
            name=lookup(row, "name"),
            file_type=lookup(row, "file_type"),
            size=int(row.get("size") or 0),
            locations=tuple(locations),
        )


@dataclass(frozen=True, slots=True)
class ManagedEntity:
    """Read-only snapshot of an asset version and its components.

    Attributes:
        id: Entity id.
        label: Display label ("<asset> v<version>").
        parent_name: Name of the asset's parent (usually the shot).
        status: Status name.
        owner: Username of the publishing user.
        date: Publish timestamp as returned by the server.
        thumbnail_id: Id of the component used as thumbnail, if any.
        components: Components attached to this entity.
    """

    id: str
    label: str
    parent_name: str | None = None
    status: str | None = None
    owner: str | None = None
    date: str | None = None
    thumbnail_id: str | None = None
    components: tuple[Component, ...] = ()

    def __post_init__(self) -> None:
        """Validate entity data after initialization."""
        if not self.id:
            msg = "Entity id cannot be empty"
            raise ValueError(msg)

    @property
    def total_size(self) -> int:
        """Sum of all component sizes in bytes."""
        return sum(component.size for component in self.components)

    @property
    def resource_identifiers(self) -> tuple[str, ...]:
        """Unique resource identifiers across all components, in order."""
        seen: dict[str, None] = {}
        for component in self.components:
            for identifier in component.resource_identifiers:
                seen.setdefault(identifier, None)
        return tuple(seen)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ManagedEntity:
        """Project an AssetVersion query row into a ManagedEntity.

        Args:
            row: Query result row for a single asset version.

        Returns:
            ManagedEntity instance.

        Raises:
            ValueError: If the row has no id.
        """
        asset_name = lookup(row, "asset.name") or "Unknown"
        version = lookup(row, "version") or "?"
        components = tuple(
            Component.from_row(c) for c in row.get("components") or [] if isinstance(c, Mapping)
        )

        return cls(
            id=lookup(row, "id"),
            label=f"{asset_name} v{version}",
            parent_name=lookup(row, "asset.parent.name") or None,
            status=lookup(row, "status.name") or None,
            owner=lookup(row, "user.username") or None,
            date=lookup(row, "date") or None,
            thumbnail_id=lookup(row, "thumbnail_id") or None,
            components=components,
        )

"""Unit tests for entity models.

Tests for projecting query rows into Component and ManagedEntity.
"""

from typing import Any

import pytest
from ftclean.models.entity import Component, ComponentLocation, ComponentRole, ManagedEntity, lookup


class TestLookup:
    """Tests for dotted attribute lookup."""

    def test_nested_path(self) -> None:
        """Nested dictionaries are walked by dotted path."""
        row = {"asset": {"parent": {"name": "SH010"}}}
        assert lookup(row, "asset.parent.name") == "SH010"

    def test_missing_path_is_empty_string(self) -> None:
        """Missing segments yield an empty string."""
        assert lookup({"asset": None}, "asset.parent.name") == ""
        assert lookup({}, "status.name") == ""

    def test_non_string_values_are_converted(self) -> None:
        """Numbers are returned as strings."""
        assert lookup({"version": 3}, "version") == "3"


class TestComponentRole:
    """Tests for ComponentRole enum."""

    def test_encoded_roles(self) -> None:
        """Only the two review encodes count as encoded."""
        assert ComponentRole.ENCODED_HIGH.is_encoded
        assert ComponentRole.ENCODED_LOW.is_encoded
        assert not ComponentRole.ORIGINAL.is_encoded
        assert not ComponentRole.IMAGE.is_encoded

    def test_values(self) -> None:
        """Role values are stable strings."""
        assert ComponentRole.ENCODED_HIGH.value == "encoded-high"
        assert ComponentRole("original") == ComponentRole.ORIGINAL


class TestComponent:
    """Tests for Component dataclass."""

    def test_empty_id_raises(self) -> None:
        """Component requires an id."""
        with pytest.raises(ValueError, match="id cannot be empty"):
            Component(id="", name="main")

    def test_from_row(self, component_row: Any) -> None:
        """Rows are projected including locations."""
        row = component_row(
            "c1",
            name="main",
            file_type=".mov",
            size=2048,
            locations=[("ftrack.server", "abc/main.mov"), ("studio.disk", "")],
        )

        component = Component.from_row(row)

        assert component.id == "c1"
        assert component.size == 2048
        assert component.locations[0] == ComponentLocation("ftrack.server", "abc/main.mov")
        assert component.resource_identifiers == ("abc/main.mov",)

    def test_from_row_missing_size(self) -> None:
        """A null size becomes 0."""
        component = Component.from_row({"id": "c1", "name": "main", "size": None})
        assert component.size == 0
        assert component.locations == ()

    def test_is_immutable(self) -> None:
        """Component is frozen."""
        component = Component(id="c1", name="main")
        with pytest.raises(AttributeError):
            component.size = 10  # type: ignore[misc]


class TestManagedEntity:
    """Tests for ManagedEntity dataclass."""

    def test_from_row(self, version_row: Any, component_row: Any) -> None:
        """Entity rows are projected with label, parent, and components."""
        row = version_row(
            "v1",
            shot="SH020",
            asset="comp",
            version=4,
            status="Omitted",
            thumbnail_id="c2",
            components=[component_row("c1", size=1000), component_row("c2", size=2000)],
        )

        entity = ManagedEntity.from_row(row)

        assert entity.label == "comp v4"
        assert entity.parent_name == "SH020"
        assert entity.status == "Omitted"
        assert entity.owner == "jane.doe"
        assert entity.thumbnail_id == "c2"
        assert entity.total_size == 3000
        assert len(entity.components) == 2

    def test_from_row_with_missing_fields(self) -> None:
        """Missing related records fall back to placeholders."""
        entity = ManagedEntity.from_row({"id": "v1"})

        assert entity.label == "Unknown v?"
        assert entity.parent_name is None
        assert entity.status is None
        assert entity.components == ()

    def test_resource_identifiers_are_unique(self) -> None:
        """Shared identifiers across components are listed once."""
        shared = ComponentLocation("disk", "shots/SH010/plate.mov")
        entity = ManagedEntity(
            id="v1",
            label="plate v1",
            components=(
                Component(id="c1", name="main", locations=(shared,)),
                Component(id="c2", name="proxy", locations=(shared, ComponentLocation("disk", "p.mp4"))),
            ),
        )

        assert entity.resource_identifiers == ("shots/SH010/plate.mov", "p.mp4")

    def test_empty_id_raises(self) -> None:
        """ManagedEntity requires an id."""
        with pytest.raises(ValueError):
            ManagedEntity(id="", label="x")

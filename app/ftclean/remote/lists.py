"""List resolution.

Lists are named collections of arbitrary entities. Membership is stored in
``ListObject`` link rows, which carry no project attribute, so members are
re-checked against the entity type (and project scope) in chunks.
"""

import logging
from dataclasses import dataclass

from ftclean.core.filters import in_list, quote
from ftclean.core.scope import ProjectScope
from ftclean.models.entity import lookup
from ftclean.remote.base import EntityReader

logger = logging.getLogger(__name__)

# Maximum number of ids per membership check query
MEMBER_CHUNK_SIZE = 50


@dataclass(frozen=True, slots=True)
class EntityList:
    """A named list of entities.

    Attributes:
        id: List id.
        name: List name.
        category: Category name (e.g., "Dailies").
        project: Name of the owning project.
    """

    id: str
    name: str
    category: str | None = None
    project: str | None = None


class ListResolver:
    """Maps named lists to member entity ids."""

    def __init__(
        self,
        reader: EntityReader,
        scope: ProjectScope,
        entity_type: str = "AssetVersion",
    ) -> None:
        """Initialize the resolver.

        Args:
            reader: Query capability.
            scope: Project scope applied to list and member queries.
            entity_type: Entity type members must belong to.
        """
        self._reader = reader
        self._scope = scope
        self._entity_type = entity_type

    def fetch_lists(self) -> list[EntityList]:
        """Fetch all lists visible in the current scope, ordered by category and name."""
        rows = self._reader.query(
            self._scope.scoped(
                "select id, name, category.name, project.name from List order by category.name, name"
            )
        )
        return [
            EntityList(
                id=lookup(row, "id"),
                name=lookup(row, "name"),
                category=lookup(row, "category.name") or None,
                project=lookup(row, "project.name") or None,
            )
            for row in rows
        ]

    def find_list(self, name_or_id: str) -> EntityList | None:
        """Find a list by id, or by case-insensitive name.

        Args:
            name_or_id: List id or list name.

        Returns:
            The matching list, or None if nothing matches.
        """
        lists = self.fetch_lists()
        for entity_list in lists:
            if entity_list.id == name_or_id:
                return entity_list
        wanted = name_or_id.casefold()
        for entity_list in lists:
            if entity_list.name.casefold() == wanted:
                return entity_list
        return None

    def member_ids(self, list_id: str) -> list[str]:
        """Resolve a list to the ids of its members of the configured type.

        Args:
            list_id: List id.

        Returns:
            Member ids, deduplicated, in link order.
        """
        if not list_id:
            return []

        links = self._reader.query(f"select entity_id from ListObject where list_id is {quote(list_id)}")
        entity_ids = [lookup(row, "entity_id") for row in links if lookup(row, "entity_id")]
        if not entity_ids:
            logger.debug("List %s has no members", list_id)
            return []

        members: dict[str, None] = {}
        for start in range(0, len(entity_ids), MEMBER_CHUNK_SIZE):
            chunk = entity_ids[start : start + MEMBER_CHUNK_SIZE]
            rows = self._reader.query(
                self._scope.scoped(
                    f"select id from {self._entity_type} where {in_list('id', chunk)}"
                )
            )
            for row in rows:
                members.setdefault(lookup(row, "id"), None)

        logger.debug(
            "List %s: %d link(s), %d %s member(s)",
            list_id,
            len(entity_ids),
            len(members),
            self._entity_type,
        )
        return list(members)

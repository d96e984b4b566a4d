"""Project scoping for queries.

A :class:`ProjectScope` is passed explicitly into every pipeline entry
point. It conjoins a project predicate onto queries; the global scope
leaves queries untouched.
"""

import logging
import re
from dataclasses import dataclass

from ftclean.core.filters import quote
from ftclean.models.entity import lookup
from ftclean.remote.base import EntityReader

logger = logging.getLogger(__name__)

# Link and value tables have no project attribute to filter on
UNSCOPED_ENTITY_TYPES: frozenset[str] = frozenset(
    {
        "CustomAttributeLink",
        "ContextCustomAttributeValue",
        "ListObject",
        "CustomAttributeConfiguration",
    }
)

_FROM = re.compile(r"from\s+(\w+)", re.IGNORECASE)
_WHERE = re.compile(r"\swhere\s", re.IGNORECASE)
_TRAILING_CLAUSE = re.compile(r"\s+(order\s+by|limit|offset|group\s+by|having)\s+", re.IGNORECASE)


class ProjectNotFoundError(LookupError):
    """Raised when a project name or id does not resolve."""


@dataclass(frozen=True, slots=True)
class ProjectScope:
    """Project the pipeline is restricted to.

    Attributes:
        project_id: Project id, or None for the global scope.
        project_name: Display name of the project.
    """

    project_id: str | None = None
    project_name: str | None = None

    @property
    def is_global(self) -> bool:
        """Check if queries run across all projects."""
        return self.project_id is None

    @classmethod
    def global_scope(cls) -> "ProjectScope":
        """Create the unrestricted scope."""
        return cls()

    def scoped(self, query: str) -> str:
        """Restrict a query to this project.

        The project predicate is inserted right after an existing
        ``where``, otherwise a ``where`` clause is added before any
        trailing ``order by``/``limit``/``offset``/``group by``/``having``
        or at the end.

        Args:
            query: Full query text.

        Returns:
            The scoped query (unchanged for the global scope and for types
            without a project attribute).
        """
        if self.project_id is None:
            return query

        from_match = _FROM.search(query)
        if from_match is None or from_match.group(1) in UNSCOPED_ENTITY_TYPES:
            return query

        predicate = f"project.id is {quote(self.project_id)}"

        where = _WHERE.search(query)
        if where is not None:
            return f"{query[: where.start()]} where {predicate} and {query[where.end() :]}"

        trailing = _TRAILING_CLAUSE.search(query)
        if trailing is not None:
            return f"{query[: trailing.start()]} where {predicate}{query[trailing.start() :]}"
        return f"{query} where {predicate}"


def resolve_project(reader: EntityReader, name_or_id: str | None) -> ProjectScope:
    """Resolve a project name (or id) to a scope.

    Args:
        reader: Query capability.
        name_or_id: Project name, full name, or id. None selects the global scope.

    Returns:
        ProjectScope for the project.

    Raises:
        ProjectNotFoundError: If no project matches.
    """
    if not name_or_id:
        return ProjectScope.global_scope()

    literal = quote(name_or_id)
    rows = reader.query(
        "select id, name, full_name from Project "
        f"where id is {literal} or name is {literal} or full_name is {literal}"
    )
    if not rows:
        msg = f"Project not found: {name_or_id}"
        raise ProjectNotFoundError(msg)

    row = rows[0]
    scope = ProjectScope(
        project_id=lookup(row, "id"),
        project_name=lookup(row, "full_name") or lookup(row, "name") or None,
    )
    logger.debug("Scoped to project %s (%s)", scope.project_name, scope.project_id)
    return scope

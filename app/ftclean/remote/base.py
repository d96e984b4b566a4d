"""Abstract capabilities for talking to the entity server.

Reading and mutating are split into two narrow interfaces so that preview
paths can be handed a reader alone and never reach a mutating call.
"""

from abc import ABC, abstractmethod
from typing import Any


class EntityReader(ABC):
    """Read-only query capability.

    Example:
        >>> rows = reader.query('select id, version from AssetVersion where version is 3')
        >>> [row["id"] for row in rows]
    """

    @abstractmethod
    def query(self, expression: str) -> list[dict[str, Any]]:
        """Run a query expression.

        Args:
            expression: Full query (``select <fields> from <Type> where ...``).

        Returns:
            Result rows as nested dictionaries.

        Raises:
            RemoteCallFailure: If the server rejects the query.
            TransportError: If the server cannot be reached.
        """


class EntityWriter(ABC):
    """Mutating capability."""

    @abstractmethod
    def update(self, entity_type: str, keys: list[str], fields: dict[str, Any]) -> dict[str, Any]:
        """Update attributes of a single entity.

        Args:
            entity_type: Entity type name (e.g., "AssetVersion").
            keys: Primary key values identifying the entity.
            fields: Attribute values to set.

        Returns:
            The server's result for the update operation.

        Raises:
            RemoteCallFailure: If the server rejects the update.
            TransportError: If the server cannot be reached.
        """

    @abstractmethod
    def call(self, operations: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Send a batch of raw operations (create, delete, ...).

        The batch is atomic on the server side: either every operation
        succeeds or the call raises.

        Args:
            operations: Operation payloads, e.g.
                ``{"action": "delete", "entity_type": "Component", "entity_key": [id]}``.

        Returns:
            One result per operation.

        Raises:
            RemoteCallFailure: If the server rejects the batch.
            TransportError: If the server cannot be reached.
        """


def delete_operation(entity_type: str, entity_id: str) -> dict[str, Any]:
    """Build a delete operation payload for :meth:`EntityWriter.call`."""
    return {"action": "delete", "entity_type": entity_type, "entity_key": [entity_id]}

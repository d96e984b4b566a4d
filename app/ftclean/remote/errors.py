"""Exceptions raised by remote capabilities.

The hierarchy separates per-item failures, which callers isolate and
record, from systemic failures, which abort the whole run.
"""


class RemoteError(Exception):
    """Base exception for all remote failures."""


class RemoteCallFailure(RemoteError):
    """Raised when the server rejects a single operation."""


class EntityNotFoundError(RemoteError):
    """Raised when a requested entity does not exist (or is out of scope)."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class TransportError(RemoteError):
    """Raised when the server cannot be reached or answers garbage."""


class AuthenticationError(TransportError):
    """Raised when the server rejects the configured credentials."""

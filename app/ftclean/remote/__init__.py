"""Remote capabilities for ftclean.

This package provides the narrow read and mutate interfaces used by the
pipeline, their ftrack HTTP implementations, and list resolution.
"""

from ftclean.remote.base import EntityReader, EntityWriter, delete_operation
from ftclean.remote.errors import (
    AuthenticationError,
    EntityNotFoundError,
    RemoteCallFailure,
    RemoteError,
    TransportError,
)

__all__ = [
    "AuthenticationError",
    "EntityNotFoundError",
    "EntityReader",
    "EntityWriter",
    "RemoteCallFailure",
    "RemoteError",
    "TransportError",
    "delete_operation",
]

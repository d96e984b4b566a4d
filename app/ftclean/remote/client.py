"""HTTP client for the ftrack JSON API.

The server exposes a single endpoint (``<server>/api``) that accepts a JSON
list of operations and answers with a list of results, or with an error
object when any operation fails.
"""

import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ftclean import __version__
from ftclean.core.config import ConfigError, ConnectionConfig
from ftclean.remote.base import EntityReader, EntityWriter
from ftclean.remote.errors import AuthenticationError, RemoteCallFailure, TransportError

logger = logging.getLogger(__name__)

# Substrings of server exception payloads that signal rejected credentials
_AUTH_MARKERS = ("authentication", "api key", "api_key", "not authorized")


class FtrackSession:
    """Connection to an ftrack server.

    Wraps a ``requests.Session`` with retry on transient gateway errors.
    The session is the only object holding credentials; readers and
    writers borrow it.

    Attributes:
        server_url: Base server URL without trailing slash.
        api_user: Username sent with every request.
        timeout: Request timeout in seconds.
    """

    def __init__(self, server_url: str, api_user: str, api_key: str, timeout: int = 60) -> None:
        """Initialize the session.

        Args:
            server_url: Base server URL (e.g., "https://studio.ftrackapp.com").
            api_user: API username.
            api_key: API key.
            timeout: Request timeout in seconds.

        Raises:
            ValueError: If any credential is empty.
        """
        if not server_url or not api_user or not api_key:
            msg = "Server URL, API user and API key are required"
            raise ValueError(msg)

        self.server_url = server_url.rstrip("/")
        self.api_user = api_user
        self.timeout = timeout
        self._session = self._create_session(api_key)

    @classmethod
    def from_config(cls, connection: ConnectionConfig) -> "FtrackSession":
        """Create a session from connection settings.

        Args:
            connection: Connection settings (file values merged with env overrides).

        Returns:
            FtrackSession instance.

        Raises:
            ConfigError: If the server URL or a credential is missing.
        """
        missing = connection.missing_fields()
        if missing:
            msg = f"Missing connection settings: {', '.join(missing)}"
            raise ConfigError(msg)
        return cls(
            server_url=connection.server_url or "",
            api_user=connection.api_user or "",
            api_key=connection.api_key or "",
            timeout=connection.timeout_seconds,
        )

    def _create_session(self, api_key: str) -> requests.Session:
        """Create a requests session with retry logic and API headers."""
        session = requests.Session()

        # POST is not in Retry's default allowed methods, so only
        # connection-level failures are retried for operation batches.
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 502, 503, 504],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update(
            {
                "Content-Type": "application/json",
                "Accept": "application/json",
                "ftrack-user": self.api_user,
                "ftrack-api-key": api_key,
                "User-Agent": f"ftclean/{__version__}",
            }
        )
        return session

    @property
    def api_url(self) -> str:
        """Full URL of the operations endpoint."""
        return f"{self.server_url}/api"

    def call(self, operations: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Send a batch of operations.

        Args:
            operations: Operation payloads.

        Returns:
            One result per operation.

        Raises:
            AuthenticationError: If credentials are rejected.
            TransportError: If the server cannot be reached or answers
                with something other than an operation result list.
            RemoteCallFailure: If the server rejects an operation.
        """
        logger.debug("POST %s (%d operation(s))", self.api_url, len(operations))
        try:
            response = self._session.post(self.api_url, json=operations, timeout=self.timeout)
        except requests.RequestException as e:
            msg = f"Cannot reach {self.server_url}: {e}"
            raise TransportError(msg) from e

        if response.status_code in (401, 403):
            msg = f"Authentication rejected by {self.server_url} (HTTP {response.status_code})"
            raise AuthenticationError(msg)
        if response.status_code >= 400:
            msg = f"Server error from {self.server_url}: HTTP {response.status_code}"
            raise TransportError(msg)

        try:
            payload = response.json()
        except ValueError as e:
            msg = f"Invalid JSON response from {self.server_url}"
            raise TransportError(msg) from e

        if isinstance(payload, dict):
            raise self._translate_error(payload)
        if not isinstance(payload, list):
            msg = f"Unexpected response type from {self.server_url}: {type(payload).__name__}"
            raise TransportError(msg)
        return payload

    def _translate_error(self, payload: dict[str, Any]) -> Exception:
        """Map a server error object to the matching exception."""
        exception = str(payload.get("exception") or "ServerError")
        content = str(payload.get("content") or exception)
        lowered = f"{exception} {content}".lower()
        if any(marker in lowered for marker in _AUTH_MARKERS):
            return AuthenticationError(content)
        return RemoteCallFailure(f"{exception}: {content}")

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()


class FtrackReader(EntityReader):
    """Query capability backed by an :class:`FtrackSession`."""

    def __init__(self, session: FtrackSession) -> None:
        self._session = session

    def query(self, expression: str) -> list[dict[str, Any]]:
        """Run a query expression and return its data rows."""
        expression = " ".join(expression.split())
        logger.debug("query: %s", expression)
        results = self._session.call([{"action": "query", "expression": expression}])
        if not results:
            return []
        data = results[0].get("data")
        if not isinstance(data, list):
            msg = f"Query returned no data list: {expression}"
            raise RemoteCallFailure(msg)
        return data


class FtrackWriter(EntityWriter):
    """Mutating capability backed by an :class:`FtrackSession`."""

    def __init__(self, session: FtrackSession) -> None:
        self._session = session

    def update(self, entity_type: str, keys: list[str], fields: dict[str, Any]) -> dict[str, Any]:
        """Update attributes of a single entity."""
        results = self._session.call(
            [
                {
                    "action": "update",
                    "entity_type": entity_type,
                    "entity_key": keys,
                    "entity_data": fields,
                }
            ]
        )
        return results[0] if results else {}

    def call(self, operations: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Send a batch of raw operations."""
        if not operations:
            return []
        return self._session.call(operations)

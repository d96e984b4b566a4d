"""Pytest configuration and shared fixtures.

This module contains in-memory server fakes and row builders used across
all test modules.
"""

import re
from collections.abc import Callable, Iterable
from typing import Any

import pytest
from ftclean.remote.base import EntityReader, EntityWriter

Responder = Callable[[str], list[dict[str, Any]]]

_ID_IS = re.compile(r'(?<![.\w])id is "([^"]+)"')


class FakeReader(EntityReader):
    """Reader that records every query and answers through a responder."""

    def __init__(self, responder: Responder | None = None) -> None:
        self.queries: list[str] = []
        self._responder = responder or (lambda expression: [])

    def query(self, expression: str) -> list[dict[str, Any]]:
        self.queries.append(expression)
        return self._responder(expression)


class FakeWriter(EntityWriter):
    """Writer that records every call and can fail for chosen entity keys."""

    def __init__(self, fail_on: dict[str, Exception] | None = None) -> None:
        self.calls: list[list[dict[str, Any]]] = []
        self.updates: list[tuple[str, list[str], dict[str, Any]]] = []
        self.fail_on = fail_on or {}

    def update(self, entity_type: str, keys: list[str], fields: dict[str, Any]) -> dict[str, Any]:
        self.updates.append((entity_type, keys, fields))
        return {"action": "update", "data": fields}

    def call(self, operations: list[dict[str, Any]]) -> list[dict[str, Any]]:
        self.calls.append(operations)
        for operation in operations:
            key = operation["entity_key"][0]
            if key in self.fail_on:
                raise self.fail_on[key]
        return [{"action": operation["action"], "data": {}} for operation in operations]

    @property
    def deleted_keys(self) -> list[str]:
        """Entity keys of every delete operation sent, in order."""
        return [op["entity_key"][0] for call in self.calls for op in call]


def make_component_row(
    component_id: str,
    name: str = "main",
    file_type: str = ".mov",
    size: int = 0,
    locations: Iterable[tuple[str, str]] = (),
) -> dict[str, Any]:
    """Build a component row as nested inside an AssetVersion row."""
    return {
        "id": component_id,
        "name": name,
        "file_type": file_type,
        "size": size,
        "component_locations": [
            {"location": {"name": location}, "resource_identifier": identifier}
            for location, identifier in locations
        ],
    }


def make_version_row(
    entity_id: str,
    *,
    shot: str = "SH010",
    asset: str = "plate",
    version: int = 1,
    status: str | None = "Approved",
    user: str | None = "jane.doe",
    date: str | None = "2026-03-01T10:00:00",
    thumbnail_id: str | None = None,
    components: Iterable[dict[str, Any]] = (),
) -> dict[str, Any]:
    """Build an AssetVersion row shaped like a query result."""
    return {
        "id": entity_id,
        "version": version,
        "date": date,
        "thumbnail_id": thumbnail_id,
        "asset": {"name": asset, "parent": {"name": shot}},
        "status": {"name": status} if status is not None else None,
        "user": {"username": user} if user is not None else None,
        "components": list(components),
    }


def rows_by_id(rows: Iterable[dict[str, Any]]) -> Responder:
    """Responder answering ``id is "<x>"`` and ``id in (...)`` queries from a row store."""
    store = {row["id"]: row for row in rows}

    def respond(expression: str) -> list[dict[str, Any]]:
        single = _ID_IS.search(expression)
        if single:
            row = store.get(single.group(1))
            return [row] if row is not None else []
        wanted = re.findall(r'"([^"]+)"', expression)
        return [store[i] for i in wanted if i in store]

    return respond


@pytest.fixture
def fake_reader() -> type[FakeReader]:
    """The FakeReader class, for tests that need a custom responder."""
    return FakeReader


@pytest.fixture
def fake_writer() -> FakeWriter:
    """A writer that accepts every call."""
    return FakeWriter()


@pytest.fixture
def failing_writer() -> type[FakeWriter]:
    """The FakeWriter class, for tests that need failures on given ids."""
    return FakeWriter


@pytest.fixture
def version_row() -> Callable[..., dict[str, Any]]:
    """Builder for AssetVersion rows."""
    return make_version_row


@pytest.fixture
def component_row() -> Callable[..., dict[str, Any]]:
    """Builder for component rows."""
    return make_component_row


@pytest.fixture
def store_responder() -> Callable[[Iterable[dict[str, Any]]], Responder]:
    """Builder for responders backed by a row store."""
    return rows_by_id


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point config and state directories at a temporary location."""
    base = tmp_path_factory.mktemp("xdg")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(base / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(base / "state"))
    for var in ("FTRACK_SERVER", "FTRACK_API_USER", "FTRACK_API_KEY"):
        monkeypatch.delenv(var, raising=False)

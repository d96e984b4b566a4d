"""Fixtures for CLI tests.

Commands are run against in-memory fakes by patching ``open_connection``.
"""

from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from ftclean.cli.types import Connection
from ftclean.core.config import AppConfig
from ftclean.core.scope import ProjectScope

ID_A = "00000000-0000-0000-0000-00000000000a"
ID_B = "00000000-0000-0000-0000-00000000000b"


@pytest.fixture
def cli_rows(version_row: Any, component_row: Any) -> list[dict[str, Any]]:
    """Two asset versions with an original, an encode and a thumbnail."""
    return [
        version_row(
            ID_A,
            shot="SH010",
            asset="plate",
            thumbnail_id="a-thumb",
            components=[
                component_row("a-orig", "main", ".mov", 2 * 1024 * 1024),
                component_row("a-low", "ftrackreview-mp4", ".mp4", 1024 * 1024),
                component_row("a-thumb", "thumbnail", ".jpg", 1024),
            ],
        ),
        version_row(
            ID_B,
            shot="SH020",
            asset="comp",
            status="Omitted",
            components=[component_row("b-orig", "main", ".exr", 1024 * 1024)],
        ),
    ]


@pytest.fixture
def connect(
    fake_reader: Any, fake_writer: Any, store_responder: Any, cli_rows: list[dict[str, Any]]
) -> Iterator[Callable[..., Connection]]:
    """Patch open_connection; returns a factory to customize the fake connection."""
    state: dict[str, Any] = {}

    def configure(responder: Any = None, writer: Any = None) -> Connection:
        session = MagicMock()
        session.server_url = "https://studio.example.com"
        state["conn"] = Connection(
            config=AppConfig(),
            session=session,
            reader=fake_reader(responder or store_responder(cli_rows)),
            writer=writer or fake_writer,
            scope=ProjectScope.global_scope(),
        )
        return state["conn"]

    configure()
    with (
        patch("ftclean.cli.types.open_connection", side_effect=lambda ctx: state["conn"]) as mock,
        patch(
            "ftclean.cli.commands.lists.open_connection", side_effect=lambda ctx: state["conn"]
        ),
    ):
        configure.mock = mock  # type: ignore[attr-defined]
        yield configure

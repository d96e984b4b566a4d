"""Unit tests for the delete commands."""

import csv
from pathlib import Path
from typing import Any

from ftclean.cli.main import app
from ftclean.core.state import StateManager
from ftclean.models.history import HistoryActionType
from ftclean.remote.errors import RemoteCallFailure, TransportError
from typer.testing import CliRunner

ID_A = "00000000-0000-0000-0000-00000000000a"
ID_B = "00000000-0000-0000-0000-00000000000b"

runner = CliRunner()


class TestDeleteEntities:
    """Tests for ftclean delete entities."""

    def test_help(self) -> None:
        result = runner.invoke(app, ["delete", "entities", "--help"])
        assert result.exit_code == 0
        assert "--execute" in result.stdout

    def test_preview_by_default(self, connect: Any, fake_writer: Any) -> None:
        """Without --execute nothing is deleted and nothing is recorded."""
        result = runner.invoke(app, ["delete", "entities", "--id", f"{ID_A},{ID_B}"])

        assert result.exit_code == 0
        assert "Would delete: 2 version(s), 4 component(s)" in result.stdout
        assert "Preview only" in result.stdout
        assert fake_writer.calls == []
        assert StateManager().get_history() == []

    def test_export_csv(self, connect: Any, tmp_path: Path) -> None:
        target = tmp_path / "preview.csv"
        result = runner.invoke(app, ["delete", "entities", "--id", ID_A, "--export", str(target)])

        assert result.exit_code == 0
        rows = list(csv.reader(target.open(encoding="utf-8")))
        assert rows[2][0] == "1"
        assert any(row and row[0] == "delete_entity" for row in rows)

    def test_execute_with_typed_confirmation(self, connect: Any, fake_writer: Any) -> None:
        result = runner.invoke(
            app,
            ["delete", "entities", "--id", f"{ID_A},{ID_B}", "--execute"],
            input="DELETE NOW\n",
        )

        assert result.exit_code == 0
        assert fake_writer.deleted_keys == [ID_A, ID_B]
        assert "All deletions completed successfully" in result.stdout

        history = StateManager().get_history()
        assert len(history) == 1
        assert history[0].action_type == HistoryActionType.DELETE_ENTITIES
        assert history[0].metadata["server"] == "https://studio.example.com"
        assert {item.entity_id for item in history[0].items} == {ID_A, ID_B}

    def test_wrong_phrase_aborts(self, connect: Any, fake_writer: Any) -> None:
        result = runner.invoke(
            app,
            ["delete", "entities", "--id", f"{ID_A},{ID_B}", "--execute"],
            input="delete now\n",
        )
        assert result.exit_code == 0
        assert "Aborted" in result.stdout
        assert fake_writer.calls == []

    def test_single_entity_yes_no_prompt(self, connect: Any, fake_writer: Any) -> None:
        result = runner.invoke(
            app, ["delete", "entities", "--id", ID_A, "--execute"], input="n\n"
        )
        assert result.exit_code == 0
        assert fake_writer.calls == []

    def test_failure_exits_non_zero(self, connect: Any, failing_writer: Any) -> None:
        connect(writer=failing_writer(fail_on={ID_B: RemoteCallFailure("locked")}))

        result = runner.invoke(
            app, ["delete", "entities", "--id", f"{ID_A},{ID_B}", "--execute", "--yes"]
        )

        assert result.exit_code == 1
        assert "locked" in result.output
        history = StateManager().get_history()
        assert not history[0].success
        assert [item.entity_id for item in history[0].items] == [ID_A]

    def test_transport_error_aborts(
        self, connect: Any, store_responder: Any, cli_rows: list[dict[str, Any]]
    ) -> None:
        """An outage while analysing aborts the command."""
        lookup = store_responder(cli_rows)

        def respond(query: str) -> list[dict[str, Any]]:
            if "components.id" in query:
                raise TransportError("connection reset")
            return lookup(query)

        connect(responder=respond)
        result = runner.invoke(app, ["delete", "entities", "--id", ID_A])

        assert result.exit_code == 1
        assert "Aborted" in result.output

    def test_nothing_selected(self, connect: Any) -> None:
        connect(responder=lambda q: [])
        result = runner.invoke(app, ["delete", "entities", "--pattern", "SH999"])
        assert result.exit_code == 0
        assert "No matching asset versions" in result.stdout


class TestDeleteComponents:
    """Tests for ftclean delete components."""

    def test_preview_spares_thumbnail(self, connect: Any) -> None:
        result = runner.invoke(app, ["delete", "components", "--id", ID_A])

        assert result.exit_code == 0
        assert "Would delete: 2 component(s), 3 MB" in result.stdout

    def test_choice_original_only(self, connect: Any, fake_writer: Any) -> None:
        result = runner.invoke(
            app,
            [
                "delete",
                "components",
                "--id",
                f"{ID_A},{ID_B}",
                "--choice",
                "original_only",
                "--execute",
                "--yes",
            ],
        )

        assert result.exit_code == 0
        assert fake_writer.deleted_keys == ["a-orig", "b-orig"]
        history = StateManager().get_history()
        assert history[0].action_type == HistoryActionType.DELETE_COMPONENTS
        assert history[0].total_size == 3 * 1024 * 1024

    def test_invalid_choice(self, connect: Any) -> None:
        result = runner.invoke(app, ["delete", "components", "--id", ID_A, "--choice", "some"])
        assert result.exit_code == 2

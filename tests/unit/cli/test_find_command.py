"""Unit tests for the find command."""

import json
from typing import Any

import pytest
from ftclean.cli.main import app
from typer.testing import CliRunner

ID_A = "00000000-0000-0000-0000-00000000000a"
ID_B = "00000000-0000-0000-0000-00000000000b"

runner = CliRunner()


class TestFindCommand:
    """Tests for ftclean find."""

    def test_find_help(self) -> None:
        result = runner.invoke(app, ["find", "--help"])
        assert result.exit_code == 0
        assert "--pattern" in result.stdout
        assert "--list" in result.stdout

    def test_requires_exactly_one_mode(self, connect: Any) -> None:
        """No mode, or two modes, fail before connecting."""
        result = runner.invoke(app, ["find"])
        assert result.exit_code == 1
        assert "exactly one" in result.output

        result = runner.invoke(app, ["find", "--id", ID_A, "--pattern", "SH*"])
        assert result.exit_code == 1
        connect.mock.assert_not_called()

    def test_invalid_id_fails_before_connecting(self, connect: Any) -> None:
        result = runner.invoke(app, ["find", "--id", "nope"])
        assert result.exit_code == 1
        assert "Invalid id" in result.output
        connect.mock.assert_not_called()

    def test_find_by_ids_json(self, connect: Any) -> None:
        result = runner.invoke(app, ["find", "--id", f"{ID_B},{ID_A}", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [row["id"] for row in data] == [ID_B, ID_A]
        assert data[0]["label"] == "SH020 - comp v1"
        assert data[0]["status"] == "Omitted"

    def test_find_by_pattern_table(self, connect: Any, cli_rows: list[dict[str, Any]]) -> None:
        conn = connect(responder=lambda q: cli_rows)
        result = runner.invoke(app, ["find", "--pattern", "SH0*"])

        assert result.exit_code == 0
        assert "SH010" in result.stdout
        assert "2 of 2" in result.stdout
        assert 'asset.parent.name like "SH0%"' in conn.reader.queries[0]

    def test_text_filter(self, connect: Any, cli_rows: list[dict[str, Any]]) -> None:
        connect(responder=lambda q: cli_rows)
        result = runner.invoke(app, ["find", "--pattern", "SH*", "--filter", "omitted", "--json"])
        assert [row["id"] for row in json.loads(result.stdout)] == [ID_B]

    def test_no_matches_shows_suggestions(self, connect: Any, cli_rows: list[dict[str, Any]]) -> None:
        def respond(query: str) -> list[dict[str, Any]]:
            return cli_rows if "limit" in query else []

        connect(responder=respond)
        result = runner.invoke(app, ["find", "--pattern", "SH01O"])

        assert result.exit_code == 0
        assert "No matching asset versions" in result.output
        assert "SH010" in result.output

    def test_filter_options(self, connect: Any) -> None:
        conn = connect(responder=lambda q: [])
        result = runner.invoke(
            app, ["find", "--status", "Omitted", "--older-than", "2026-01-01", "--attr", "delivered"]
        )
        assert result.exit_code == 0
        query = conn.reader.queries[0]
        assert 'status.name in ("Omitted")' in query
        assert 'date < "2026-01-01"' in query
        assert 'custom_attributes any (key is "delivered" and value is true)' in query

    @pytest.mark.parametrize("args", [["--older-than", "01/01/2026"], ["--attr", "=x"]])
    def test_invalid_filter_options(self, connect: Any, args: list[str]) -> None:
        result = runner.invoke(app, ["find", *args])
        assert result.exit_code == 1
        assert "Invalid filter" in result.output
        connect.mock.assert_not_called()

    def test_unknown_list(self, connect: Any) -> None:
        connect(responder=lambda q: [])
        result = runner.invoke(app, ["find", "--list", "Nope"])
        assert result.exit_code == 1
        assert "List not found" in result.output

    def test_broad_pattern_warns(self, connect: Any, version_row: Any) -> None:
        rows = [version_row(f"v{i}", shot=f"SH{i:03d}") for i in range(60)]
        connect(responder=lambda q: rows)

        result = runner.invoke(app, ["find", "--pattern", "SH*", "--json"])

        assert result.exit_code == 0
        assert "matches 60 shots" in result.output

    def test_narrow_pattern_does_not_warn(self, connect: Any, cli_rows: list[dict[str, Any]]) -> None:
        connect(responder=lambda q: cli_rows)
        result = runner.invoke(app, ["find", "--pattern", "SH*"])
        assert "Add characters" not in result.output

"""Unit tests for selection models."""

from typing import Any

import pytest
from ftclean.models.selection import MatchResult, PatternType, SelectionCandidate, SelectionResult


class TestMatchResult:
    """Tests for MatchResult validation."""

    @pytest.mark.parametrize("score", [-0.1, 1.01])
    def test_score_out_of_range(self, score: float) -> None:
        """Scores must lie within [0, 1]."""
        with pytest.raises(ValueError, match="Score must be between"):
            MatchResult("SH010", score, PatternType.EXACT)

    def test_bounds_inclusive(self) -> None:
        """0.0 and 1.0 are valid."""
        assert MatchResult("a", 0.0, PatternType.REGEX).score == 0.0
        assert MatchResult("a", 1.0, PatternType.EXACT).score == 1.0


class TestSelectionCandidate:
    """Tests for SelectionCandidate.from_row."""

    def test_label_and_description(self, version_row: Any) -> None:
        """Label joins shot, asset and version; description shows status and user."""
        candidate = SelectionCandidate.from_row(
            version_row("v1", shot="SH030", asset="anim", version=12, status="Approved", user="sam")
        )
        assert candidate.label == "SH030 - anim v12"
        assert candidate.description == "Status: Approved | User: sam"
        assert candidate.metadata["version"] == "12"
        assert candidate.metadata["status"] == "Approved"

    def test_unknown_placeholders(self) -> None:
        """Missing related records render as Unknown."""
        candidate = SelectionCandidate.from_row({"id": "v1"})
        assert candidate.label == "Unknown - Unknown v?"
        assert candidate.description == "Status: Unknown | User: Unknown"
        assert candidate.metadata["status"] is None


class TestSelectionResult:
    """Tests for SelectionResult."""

    def test_empty_is_not_cancelled(self) -> None:
        """An empty result is distinct from an aborted one."""
        empty = SelectionResult()
        assert empty.is_empty
        assert not empty.cancelled
        assert SelectionResult.aborted().cancelled

    def test_ids_in_order(self) -> None:
        """ids follow item order."""
        result = SelectionResult(
            items=(SelectionCandidate("b", "B"), SelectionCandidate("a", "A"))
        )
        assert result.ids == ["b", "a"]

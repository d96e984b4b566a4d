"""Unit tests for CSV report export."""

import csv
from pathlib import Path

from ftclean.core.report import DETAIL_HEADERS, SUMMARY_HEADERS, write_report_csv
from ftclean.models.deletion import (
    DeletionFailure,
    DeletionSummary,
    DryRunReportItem,
    ReportOperation,
)
from ftclean.models.entity import ComponentRole

MB = 1024 * 1024


def _read(path: Path) -> list[list[str]]:
    with path.open(encoding="utf-8", newline="") as f:
        return list(csv.reader(f))


class TestWriteReportCsv:
    """Tests for write_report_csv."""

    def test_layout(self, tmp_path: Path) -> None:
        """Summary, failures, separator, then details."""
        summary = DeletionSummary(
            entities_deleted=1,
            components_deleted=1,
            bytes_deleted=3 * MB,
            failures=(DeletionFailure("v9", "not found"),),
        )
        report = [
            DryRunReportItem(
                operation=ReportOperation.DELETE_ENTITY,
                entity_id="v1",
                entity_label="plate v1",
                parent_name="SH010",
                status="Omitted",
                owner="sam",
                size=3 * MB,
                locations=("a/main.mov", "a/proxy.mp4"),
            ),
            DryRunReportItem(
                operation=ReportOperation.DELETE_COMPONENT,
                entity_id="v1",
                entity_label="plate v1",
                component_id="c1",
                component_name="main",
                component_role=ComponentRole.ORIGINAL,
                size=MB // 2,
            ),
        ]

        path = write_report_csv(tmp_path / "report.csv", summary, report)
        rows = _read(path)

        assert rows[0] == ["Summary"]
        assert rows[1] == SUMMARY_HEADERS
        assert rows[2] == ["1", "1", "3.00", "1"]
        assert rows[4:7] == [["Failures"], ["ID", "Reason"], ["v9", "not found"]]
        assert ["-----"] in rows
        details = rows.index(["Details"])
        assert rows[details + 1] == DETAIL_HEADERS
        entity_row = rows[details + 2]
        assert entity_row[0] == "delete_entity"
        assert entity_row[9] == "3.00"
        assert entity_row[10] == "a/main.mov; a/proxy.mp4"
        component_row = rows[details + 3]
        assert component_row[6:10] == ["c1", "main", "original", "0.50"]

    def test_no_failures_block_when_clean(self, tmp_path: Path) -> None:
        path = write_report_csv(tmp_path / "r.csv", DeletionSummary(), [])
        rows = _read(path)
        assert ["Failures"] not in rows
        assert rows[-1] == DETAIL_HEADERS

    def test_directory_gets_timestamped_name(self, tmp_path: Path) -> None:
        path = write_report_csv(tmp_path, DeletionSummary(), [])
        assert path.parent == tmp_path
        assert path.name.startswith("ftclean-preview-")
        assert path.suffix == ".csv"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        path = write_report_csv(tmp_path / "nested" / "out.csv", DeletionSummary(), [])
        assert path.exists()

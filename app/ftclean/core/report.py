"""CSV export of deletion reports.

The file holds a Summary block, an optional Failures block, a ``-----``
separator, then one Details row per report item. Sizes are in MB with two
decimals; multiple locations share one cell, separated by ``; ``.
"""

import csv
import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from ftclean.models.deletion import DeletionSummary, DryRunReportItem

logger = logging.getLogger(__name__)

SUMMARY_HEADERS = ["Versions Deleted", "Components Deleted", "Deleted Size (MB)", "Failures"]
DETAIL_HEADERS = [
    "Operation",
    "Asset Version ID",
    "Asset Version Label",
    "Shot Name",
    "Status",
    "User",
    "Component ID",
    "Component Name",
    "Component Type",
    "Size (MB)",
    "Locations",
]


def _mb(size: int) -> str:
    return f"{size / (1024 * 1024):.2f}"


def default_report_name(prefix: str = "ftclean-preview") -> str:
    """Build a timestamped report file name, e.g. ``ftclean-preview-20260101-120000.csv``."""
    return f"{prefix}-{datetime.now().strftime('%Y%m%d-%H%M%S')}.csv"


def write_report_csv(
    path: Path,
    summary: DeletionSummary,
    report: Sequence[DryRunReportItem],
) -> Path:
    """Write a deletion report to CSV.

    Args:
        path: Target file. A directory gets a timestamped file name.
        summary: Run summary.
        report: Report rows.

    Returns:
        Path of the written file.

    Raises:
        OSError: If the file cannot be written.
    """
    if path.is_dir():
        path = path / default_report_name()
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(["Summary"])
        writer.writerow(SUMMARY_HEADERS)
        writer.writerow(
            [
                summary.entities_deleted,
                summary.components_deleted,
                _mb(summary.bytes_deleted),
                len(summary.failures),
            ]
        )

        if summary.failures:
            writer.writerow([])
            writer.writerow(["Failures"])
            writer.writerow(["ID", "Reason"])
            for failure in summary.failures:
                writer.writerow([failure.id, failure.reason])

        writer.writerow([])
        writer.writerow(["-----"])
        writer.writerow([])
        writer.writerow(["Details"])
        writer.writerow(DETAIL_HEADERS)
        for item in report:
            writer.writerow(
                [
                    item.operation.value,
                    item.entity_id,
                    item.entity_label or "",
                    item.parent_name or "",
                    item.status or "",
                    item.owner or "",
                    item.component_id or "",
                    item.component_name or "",
                    item.component_role.value if item.component_role else "",
                    _mb(item.size),
                    "; ".join(item.locations),
                ]
            )

    logger.debug("Wrote %d report row(s) to %s", len(report), path)
    return path

"""CSV and JSON export of derived reports."""

import csv
import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def dated_filename(report: str, suffix: str = ".csv", today: Optional[date] = None) -> str:
    """Name an export the way the dashboard does: donors_2024-01-05.csv."""
    today = today or date.today()
    return f"{report}_{today.isoformat()}{suffix}"


def write_csv(rows: list[dict], output_path: Path) -> int:
    """Write rows to CSV; the header comes from the first row's keys.

    Returns:
        Number of data rows written (0 and no file when there is nothing to export)
    """
    if not rows:
        logger.warning("No data to export.")
        return 0

    fieldnames = list(rows[0].keys())
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({k: "" if row.get(k) is None else row.get(k) for k in fieldnames})

    logger.info(f"Wrote {len(rows)} rows to {output_path}")
    return len(rows)


def write_json(data, output_path: Path):
    """Write data to a JSON file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)

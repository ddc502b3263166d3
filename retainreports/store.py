"""On-disk storage for retained reports.

One JSON file per (author, distribution label):

    <report_dir>/DAGOLDEN.Sub-Uplevel-0.2800.log.json
    <report_dir>/Foo-1.0.log.json          # file:// locators, no author

A second report for the same pair replaces the first. The directory must
already exist; creating it is the caller's job.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any

from retainreports.models import OutcomeRecord
from retainreports.utils import MissingDirectoryError, WriteFailureError

logger = logging.getLogger(__name__)

REPORT_SUFFIX = ".log.json"


def report_filename(record: OutcomeRecord) -> str:
    if record.author:
        return f"{record.author}.{record.distname}{REPORT_SUFFIX}"
    return f"{record.distname}{REPORT_SUFFIX}"


class ReportStore:
    """Writes OutcomeRecords into a fixed report directory."""

    def __init__(self, report_dir: str | Path) -> None:
        self.report_dir = Path(report_dir)

    def report_path(self, record: OutcomeRecord) -> Path:
        name = report_filename(record)
        path = self.report_dir / name
        if Path(name).name != name:
            raise WriteFailureError(f"Refusing to write {name!r} outside {self.report_dir}")
        return path

    def persist(self, record: OutcomeRecord) -> Path:
        """Write *record* and return the file path.

        Raises MissingDirectoryError if the directory is gone and
        WriteFailureError if the file cannot be written; both end the run.
        """
        if not self.report_dir.is_dir():
            raise MissingDirectoryError(f"Could not locate {self.report_dir}")

        path = self.report_path(record)
        payload = json.dumps(record.to_report_dict())
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(payload + "\n")
        except OSError as exc:
            raise WriteFailureError(f"Unable to write {path}: {exc}") from exc

        logger.debug("Wrote report %s", path)
        return path


def load_report(path: str | Path) -> dict[str, Any]:
    """Read a retained report back into a dict"""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def summarize_reports(report_dir: str | Path) -> dict[str, int]:
    """Count retained reports per grade (upper-cased)."""
    report_dir = Path(report_dir)
    if not report_dir.is_dir():
        raise MissingDirectoryError(f"Could not locate {report_dir}")

    counts: Counter[str] = Counter()
    for path in sorted(report_dir.glob(f"*{REPORT_SUFFIX}")):
        try:
            report = load_report(path)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Skipping unreadable report %s: %s", path, exc)
            continue
        counts[str(report.get("grade", "UNKNOWN")).upper()] += 1
    return dict(counts)

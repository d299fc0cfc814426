"""
JSON run report shared by the build and validation steps.

Each step owns one top-level section ("build", "validation"); updating a
section leaves the others as they were.
"""

import json
import os
import tempfile
from pathlib import Path

from config.logging import logger


def load_report(path: Path) -> dict:
    """Existing report, or {} when the file is absent or not valid JSON."""
    path = Path(path)
    if not path.exists():
        return {}
    try:
        report = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Ignoring unreadable report {path}: {e}")
        return {}
    return report if isinstance(report, dict) else {}


def update_report(path: Path, section: str, payload: dict) -> dict:
    """Replace one section of the report and write it back."""
    path = Path(path)
    report = load_report(path)
    report[section] = payload

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(json.dumps(report, indent=2) + "\n")
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    return report


def report_counts(report: dict) -> dict:
    """Validation counts when present, else the build counts."""
    return (report.get("validation") or {}).get("counts") or (report.get("build") or {}).get("counts") or {}


def refresh_commit_message(report: dict, timestamp: str) -> str:
    counts = report_counts(report)
    rows = int(counts.get("outputRows") or 0)
    mls = int(counts.get("mlsRows") or 0)
    active = int(counts.get("mlsActiveRows") or 0)
    return f"data refresh {timestamp} rows={rows} mls={mls} active={active}"

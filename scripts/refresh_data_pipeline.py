#!/usr/bin/env python3
"""
Data Refresh Orchestrator

Runs the build and validation steps in order, then optionally stages the
refreshed files and pushes a commit summarising the report counts.

Usage:
    python scripts/refresh_data_pipeline.py
    python scripts/refresh_data_pipeline.py --skip-mls
    python scripts/refresh_data_pipeline.py --report-only
    python scripts/refresh_data_pipeline.py --push
"""

import argparse
import subprocess
import sys
import time
from datetime import datetime, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent

# Add project root to path
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging import logger
from config.settings import settings
from processing.report import load_report, refresh_commit_message


def fmt_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    m, s = divmod(int(seconds), 60)
    return f"{m}m {s}s"


def run_step(name: str, command: list[str]) -> None:
    """Run one step from the project root; raise on non-zero exit."""
    logger.info(f"[{name}] $ {' '.join(command)}")
    start = time.time()
    proc = subprocess.run(command, cwd=PROJECT_ROOT)
    duration = fmt_duration(time.time() - start)
    if proc.returncode != 0:
        raise RuntimeError(f"Step '{name}' failed (exit code {proc.returncode}, {duration})")
    logger.info(f"[{name}] OK ({duration})")


def stage_targets() -> list[str]:
    targets = []
    for path in (settings.COUNTY_SALES_FILE, settings.ENRICHED_OUTPUT_FILE, settings.REPORT_FILE):
        try:
            targets.append(str(Path(path).resolve().relative_to(PROJECT_ROOT.resolve())))
        except ValueError:
            logger.warning(f"Not staging {path}: outside the project root")
    return targets + ["scripts"]


def stage_and_push(remote: str, branch: str) -> None:
    run_step("git add", ["git", "add", *stage_targets()])

    # --quiet exits 0 when nothing is staged
    diff = subprocess.run(["git", "diff", "--cached", "--quiet"], cwd=PROJECT_ROOT)
    if diff.returncode == 0:
        logger.info("No staged changes to commit.")
        return

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    message = refresh_commit_message(load_report(settings.REPORT_FILE), timestamp)
    run_step("git commit", ["git", "commit", "-m", message])
    run_step("git push", ["git", "push", remote, branch])


def main():
    parser = argparse.ArgumentParser(description="Rebuild, validate and optionally publish the sale datasets")
    parser.add_argument("--skip-mls", action="store_true", help="Skip the MLS enrichment build")
    parser.add_argument("--report-only", action="store_true", help="Only run validation")
    parser.add_argument("--push", action="store_true", help="Commit and push refreshed files")
    parser.add_argument("--remote", default="origin", help="Git remote to push to (default: origin)")
    parser.add_argument("--branch", default="main", help="Git branch to push (default: main)")

    args = parser.parse_args()

    python = sys.executable
    try:
        if not args.report_only and not args.skip_mls:
            run_step("build", [python, "scripts/build_mls_enriched_dataset.py"])
        run_step("validate", [python, "scripts/validate_data_refresh.py"])
        if args.push:
            stage_and_push(args.remote, args.branch)
    except RuntimeError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Validate a data refresh.

Checks required columns, MLS row counts and active listings without an
asking price, then writes the "validation" section of the refresh report.
Exits 1 when validation fails.

Usage:
    python scripts/validate_data_refresh.py
    python scripts/validate_data_refresh.py --enriched-file enriched.csv
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import settings
from processing.validation import run_validation


def main():
    parser = argparse.ArgumentParser(description="Validate refreshed sale datasets")
    parser.add_argument(
        "--public-file",
        type=Path,
        default=settings.COUNTY_SALES_FILE,
        help="County sale proxy CSV",
    )
    parser.add_argument(
        "--enriched-file",
        type=Path,
        default=settings.ENRICHED_OUTPUT_FILE,
        help="Enriched CSV produced by the build step",
    )
    parser.add_argument(
        "--realtor-dir",
        type=Path,
        default=settings.REALTOR_EXPORT_DIR,
        help="Directory of brokerage CSV exports",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=settings.REPORT_FILE,
        help="JSON report to update",
    )

    args = parser.parse_args()

    summary = run_validation(
        report_file=args.report,
        public_file=args.public_file,
        enriched_file=args.enriched_file,
        realtor_dir=args.realtor_dir,
    )
    sys.exit(0 if summary.passed else 1)


if __name__ == "__main__":
    main()

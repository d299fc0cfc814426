#!/usr/bin/env python3
"""
Build the MLS-enriched sales dataset.

Links the county sale proxy CSV to the brokerage exports and writes the
enriched CSV plus the "build" section of the refresh report.

Usage:
    python scripts/build_mls_enriched_dataset.py
    python scripts/build_mls_enriched_dataset.py --realtor-dir ./exports --output enriched.csv
    python scripts/build_mls_enriched_dataset.py --max-date-lag 30
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.logging import logger
from config.settings import settings
from processing.errors import PipelineError
from processing.pipeline import MlsEnrichmentPipeline
from processing.record_linkage import MatchingConfig


def main():
    parser = argparse.ArgumentParser(
        description="Enrich county sale records with brokerage export data"
    )
    parser.add_argument(
        "--county-file",
        type=Path,
        default=settings.COUNTY_SALES_FILE,
        help=f"County sale proxy CSV (default: {settings.COUNTY_SALES_FILE.name})",
    )
    parser.add_argument(
        "--realtor-dir",
        type=Path,
        default=settings.REALTOR_EXPORT_DIR,
        help=f"Directory of brokerage CSV exports (default: {settings.REALTOR_EXPORT_DIR.name})",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=settings.ENRICHED_OUTPUT_FILE,
        help=f"Enriched CSV to write (default: {settings.ENRICHED_OUTPUT_FILE.name})",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=settings.REPORT_FILE,
        help=f"JSON report to update (default: {settings.REPORT_FILE.name})",
    )
    parser.add_argument(
        "--max-date-lag",
        type=int,
        help=f"Closed-sale date window in days (default: {settings.MAX_DATE_LAG_DAYS})",
    )
    parser.add_argument(
        "--stub-max-lag",
        type=int,
        help=f"Listing-stub window in days (default: {settings.STUB_MAX_LAG_DAYS})",
    )

    args = parser.parse_args()

    config = MatchingConfig.from_settings()
    if args.max_date_lag is not None:
        config.max_date_lag_days = args.max_date_lag
    if args.stub_max_lag is not None:
        config.stub_max_lag_days = args.stub_max_lag

    pipeline = MlsEnrichmentPipeline(
        county_file=args.county_file,
        realtor_dir=args.realtor_dir,
        output_file=args.output,
        report_file=args.report,
        config=config,
    )

    try:
        pipeline.run()
    except PipelineError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()

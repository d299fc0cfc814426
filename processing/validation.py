"""
Post-build validation of a data refresh.

Re-reads the county extract, the enriched output and the export directory,
derives pass/fail plus warnings, and records them in the report's
"validation" section.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from config.logging import logger
from config.settings import settings
from processing.errors import NoCandidateFilesFound
from processing.models import DataMode, ListingStatus
from processing.normalizer import parse_money
from processing.report import update_report
from sources.brokerage import list_export_files
from sources.csv_files import missing_columns, read_dict_rows, read_header

REQUIRED_PUBLIC_COLUMNS = ["id", "address", "type", "closePrice"]

REQUIRED_ENRICHED_COLUMNS = [
    "dataMode",
    "id",
    "address",
    "major",
    "minor",
    "parcelNbr",
    "saleDate",
    "listPriceAtPending",
    "closePrice",
    "mlsStatus",
    "mlsListingPrice",
    "mlsOriginalPrice",
    "mlsDOM",
    "mlsCDOM",
    "saleToListRatio",
    "saleToOriginalListRatio",
    "bidUpAmount",
    "bidUpPct",
]


@dataclass
class ValidationSummary:
    """Outcome of one validation pass."""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    counts: dict = field(default_factory=dict)
    files: dict = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return not self.errors

    @property
    def status(self) -> str:
        return "pass" if self.passed else "fail"

    def as_dict(self) -> dict:
        return {
            "generatedAt": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "status": self.status,
            "errors": self.errors,
            "warnings": self.warnings,
            "files": self.files,
            "counts": self.counts,
        }


def _list_realtor_files(directory: Path) -> list[Path]:
    try:
        return list_export_files(directory)
    except NoCandidateFilesFound:
        return []


def validate_refresh(
    public_file: Optional[Path] = None,
    enriched_file: Optional[Path] = None,
    realtor_dir: Optional[Path] = None,
    address_warn_threshold: Optional[float] = None,
) -> ValidationSummary:
    """Check the refresh outputs. Never raises for content problems; they become errors."""
    public_file = Path(public_file or settings.COUNTY_SALES_FILE)
    enriched_file = Path(enriched_file or settings.ENRICHED_OUTPUT_FILE)
    realtor_dir = Path(realtor_dir or settings.REALTOR_EXPORT_DIR)
    if address_warn_threshold is None:
        address_warn_threshold = settings.ADDRESS_SCORE_WARN_THRESHOLD

    summary = ValidationSummary()

    if not public_file.is_file():
        summary.errors.append(f"Missing file: {public_file}")
    if not enriched_file.is_file():
        summary.errors.append(f"Missing file: {enriched_file}")

    realtor_files = _list_realtor_files(realtor_dir)
    if not realtor_files:
        summary.warnings.append(
            f"No realtor CSV files found in {realtor_dir}. MLS enrichment may be stale."
        )

    summary.files = {
        "public": public_file.name,
        "enriched": enriched_file.name,
        "realtorCsvCount": len(realtor_files),
    }

    if summary.errors:
        return summary

    missing_public = missing_columns(read_header(public_file), REQUIRED_PUBLIC_COLUMNS)
    missing_enriched = missing_columns(read_header(enriched_file), REQUIRED_ENRICHED_COLUMNS)
    if missing_public:
        summary.errors.append(f"Public dataset missing columns: {', '.join(missing_public)}")
    if missing_enriched:
        summary.errors.append(f"Enriched dataset missing columns: {', '.join(missing_enriched)}")
        return summary

    _, rows = read_dict_rows(enriched_file)
    modes = Counter(row.get("dataMode") or "UNKNOWN" for row in rows)
    mls_rows = [row for row in rows if row.get("dataMode") == DataMode.MLS_ENRICHED.value]
    sold_rows = [row for row in mls_rows if parse_money(row.get("closePrice")) > 0]
    open_rows = [row for row in mls_rows if parse_money(row.get("closePrice")) <= 0]
    active_rows = [
        row for row in open_rows
        if (row.get("mlsStatus") or "").strip().upper() == ListingStatus.ACTIVE.value.upper()
    ]
    active_missing_ask = sum(
        1 for row in active_rows
        if parse_money(row.get("mlsListingPrice") or row.get("listPriceAtPending")) <= 0
    )
    low_address_scores = sum(
        1 for row in rows
        if row.get("mlsAddressScore")
        and parse_money(row.get("mlsAddressScore")) < address_warn_threshold
    )

    summary.counts = {
        "outputRows": len(rows),
        "modes": dict(modes),
        "mlsRows": len(mls_rows),
        "mlsSoldRows": len(sold_rows),
        "mlsOpenRows": len(open_rows),
        "mlsActiveRows": len(active_rows),
        "lowAddressScoreRows": low_address_scores,
    }

    if active_missing_ask:
        summary.errors.append(f"Found {active_missing_ask} active MLS rows without listing/pending ask.")
    if not mls_rows:
        summary.errors.append("No MLS_ENRICHED rows found in enriched dataset.")
    if not sold_rows:
        summary.warnings.append("No MLS sold rows found. Bid model comp pool may be empty.")
    if low_address_scores:
        summary.warnings.append(
            f"{low_address_scores} linked rows have an address score below {address_warn_threshold:g}."
        )

    return summary


def run_validation(report_file: Optional[Path] = None, **kwargs) -> ValidationSummary:
    """Validate and store the result under the report's "validation" section."""
    summary = validate_refresh(**kwargs)
    update_report(Path(report_file or settings.REPORT_FILE), "validation", summary.as_dict())

    logger.info(f"Validation status: {summary.status.upper()}")
    if summary.counts:
        logger.info(f"Counts: {summary.counts}")
    for warning in summary.warnings:
        logger.warning(warning)
    for error in summary.errors:
        logger.error(error)

    return summary

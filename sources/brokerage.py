"""
Brokerage (MLS) export loader.

Every CSV in the export directory is one region's "Sale Stats" download.
The exports open with banner rows, so the header is the first row holding
both "APN" and "Status". Columns such as "Listing Number" can appear twice.

Usage:
    records = load_realtor_records(Path("realtor_exports"))
"""

from pathlib import Path
from typing import Optional

from config.logging import logger
from processing.errors import MissingRequiredColumn, NoCandidateFilesFound
from processing.models import RealtorListingRecord
from processing.normalizer import build_realtor_record, region_for_file
from sources.csv_files import disambiguate_headers, iter_csv_cells, require_columns

REQUIRED_REALTOR_COLUMNS = [
    "APN",
    "Status",
    "Listing Date",
    "Pending Date",
    "Contractual Date",
    "Selling Date",
    "Listing Price",
    "Original Price",
    "Selling Price",
    "DOM",
    "CDOM",
]

HEADER_MARKERS = ("APN", "Status")


def list_export_files(directory: Path) -> list[Path]:
    """CSV files in the export directory, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        raise NoCandidateFilesFound(directory)

    files = sorted(
        (p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ".csv"),
        key=lambda p: p.name,
    )
    if not files:
        raise NoCandidateFilesFound(directory)
    return files


def read_export_rows(path: Path) -> tuple[list[str], list[dict[str, str]]]:
    """Locate the header row, then return (header, data rows)."""
    headers: Optional[list[str]] = None
    rows: list[dict[str, str]] = []

    for cells in iter_csv_cells(path):
        if headers is None:
            if all(marker in cells for marker in HEADER_MARKERS):
                headers = disambiguate_headers(cells)
            continue
        rows.append({h: cells[i] if i < len(cells) else "" for i, h in enumerate(headers)})

    if headers is None:
        raise MissingRequiredColumn(REQUIRED_REALTOR_COLUMNS, path.name)
    return headers, rows


def load_export_file(path: Path, region: str) -> list[RealtorListingRecord]:
    headers, rows = read_export_rows(path)
    require_columns(headers, REQUIRED_REALTOR_COLUMNS, path.name)

    return [
        build_realtor_record(row, path.name, region, row_index)
        for row_index, row in enumerate(rows)
    ]


def load_realtor_records(
    directory: Path,
    region_labels: Optional[dict[str, str]] = None,
) -> tuple[list[RealtorListingRecord], list[Path]]:
    """
    Load every export in the directory, in file-name order.

    Raises:
        NoCandidateFilesFound: directory absent or without CSV files
        MissingRequiredColumn: a file lacks the header or required columns
    """
    files = list_export_files(directory)

    records: list[RealtorListingRecord] = []
    for path in files:
        region = region_for_file(path.name, region_labels)
        file_records = load_export_file(path, region)
        logger.info(f"Parsed {len(file_records)} brokerage rows from {path.name} ({region})")
        records.extend(file_records)

    return records, files

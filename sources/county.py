"""
County sale extract loader.

Reads the public-records proxy CSV (one row per recorded sale) into
CountySaleRecords, keeping source order.
"""

from pathlib import Path

from config.logging import logger
from processing.models import CountySaleRecord
from processing.normalizer import build_county_record
from sources.csv_files import read_dict_rows, require_columns, require_file

REQUIRED_COUNTY_COLUMNS = [
    "id",
    "address",
    "type",
    "closePrice",
    "saleDate",
    "major",
    "minor",
]


def load_county_records(path: Path) -> tuple[list[str], list[CountySaleRecord]]:
    """
    Load the county extract.

    Returns:
        (header in file order, records in file order)

    Raises:
        MissingInputFile: the file does not exist
        MissingRequiredColumn: any required column is absent (all are listed)
    """
    path = require_file(path, "county sale dataset")
    headers, rows = read_dict_rows(path)
    require_columns(headers, REQUIRED_COUNTY_COLUMNS, path.name)

    records = [build_county_record(row, index) for index, row in enumerate(rows)]
    invalid = sum(1 for record in records if not record.parcel)

    logger.info(f"Loaded {len(records)} county rows from {path.name} ({invalid} without a valid parcel)")
    return headers, records

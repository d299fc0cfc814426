"""
Per-parcel descriptive snapshot built from the county rows.
"""

from typing import Iterable, Optional

from processing.models import CountySaleRecord, ParcelSnapshot
from processing.normalizer import parse_money

SNAPSHOT_COLUMNS = [
    "address",
    "neighborhood",
    "type",
    "zip",
    "districtName",
    "area",
    "subArea",
    "sqFtLot",
    "zoning",
    "lat",
    "lon",
    "beds",
    "baths",
    "sqft",
    "yearBuilt",
    "assessedValue",
]

# A zero in these is the county extract's way of saying "unknown"
NUMERIC_COLUMNS = {"sqFtLot", "beds", "baths", "sqft", "yearBuilt", "assessedValue"}


def _is_empty(column: str, value: str) -> bool:
    if not value:
        return True
    return column in NUMERIC_COLUMNS and parse_money(value) <= 0


def build_parcel_snapshots(records: Iterable[CountySaleRecord]) -> dict[str, ParcelSnapshot]:
    """
    One snapshot per parcel key, holding the first non-empty value per column
    in county-row order. Later rows only fill columns still empty.
    """
    snapshots: dict[str, ParcelSnapshot] = {}

    for record in records:
        if not record.parcel:
            continue
        snapshot = snapshots.setdefault(record.parcel, ParcelSnapshot(parcel=record.parcel))
        for column in SNAPSHOT_COLUMNS:
            if not _is_empty(column, snapshot.get(column)):
                continue
            value = str(record.raw.get(column) or "").strip()
            if not _is_empty(column, value):
                snapshot.values[column] = value

    return snapshots


def snapshot_value(snapshot: Optional[ParcelSnapshot], column: str) -> str:
    return snapshot.get(column) if snapshot else ""

"""
Record normalization.

Turns raw CSV rows from the county extract and the brokerage exports into
typed records. Nothing in here raises on bad data: unparsable numbers become
0 and unparsable dates become "".
"""

import math
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from processing.models import CountySaleRecord, ListingStatus, RealtorListingRecord

ISO_DATE_PAT = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
US_DATE_PAT = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:\s+\d{1,2}:\d{2}(?::\d{2})?(?:\s*[AP]M)?)?$",
    re.IGNORECASE,
)

# Tried in order when neither of the patterns above fits
FALLBACK_DATE_FORMATS = [
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d",
    "%m/%d/%y",
    "%m-%d-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d-%b-%Y",
    "%d %b %Y",
]

STATUS_ALIASES = {
    "active": ListingStatus.ACTIVE,
    "pending": ListingStatus.PENDING,
    "pending inspection": ListingStatus.PENDING_INSPECTION,
    "pending bu requested": ListingStatus.PENDING_BU_REQUESTED,
    "pending backup requested": ListingStatus.PENDING_BU_REQUESTED,
    "pending bu": ListingStatus.PENDING_BU_REQUESTED,
    "contingent": ListingStatus.CONTINGENT,
    "sold": ListingStatus.SOLD,
    "closed": ListingStatus.SOLD,
}

SOLD_PAT = re.compile(r"sold|closed", re.IGNORECASE)
SALE_STATS_SUFFIX_PAT = re.compile(r"\s*sale\s+stats\s*$", re.IGNORECASE)


# ----------------------------- Numbers -----------------------------

def parse_money(value: Any) -> float:
    """Parse a currency-ish value, keeping only digits, '.' and '-'. Bad input -> 0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0

    cleaned = re.sub(r"[^0-9.\-]", "", str(value))
    if not cleaned:
        return 0.0
    try:
        number = float(cleaned)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def round_half_up(number: float) -> int:
    return int(math.floor(number + 0.5))


def to_int(value: Any) -> int:
    return round_half_up(parse_money(value))


# ----------------------------- Dates -----------------------------

def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """Parse ISO, US slash (optionally with a time of day) or a handful of other formats."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    raw = str(value).strip()
    if not raw:
        return None

    m = ISO_DATE_PAT.match(raw)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = US_DATE_PAT.match(raw)
    if m:
        return _safe_date(int(m.group(3)), int(m.group(1)), int(m.group(2)))

    for fmt in FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue

    return None


def to_iso_date(value: Any) -> str:
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else ""


def day_diff(start: Any, end: Any) -> Optional[int]:
    """Whole days from start to end, None if either side is missing."""
    d1 = parse_date(start)
    d2 = parse_date(end)
    if d1 is None or d2 is None:
        return None
    return (d2 - d1).days


# ----------------------------- Parcels -----------------------------

def _digits(value: Any) -> str:
    return re.sub(r"\D", "", str(value or ""))


def normalize_apn(value: Any) -> str:
    """Brokerage APN -> 10 digits, or "" when it is anything else."""
    digits = _digits(value)
    return digits if len(digits) == 10 else ""


def parcel_digits(parcel_nbr: Any = None, major: Any = None, minor: Any = None) -> str:
    """
    County parcel key.

    Uses the combined parcel number column when present, otherwise the
    zero-padded major (6) + minor (4). Longer values keep their last 10 digits.
    A non-blank parcel number without digits ("N/A") is an invalid key; it
    does not fall back to major/minor.
    """
    digits = _digits(parcel_nbr)
    if not str(parcel_nbr or "").strip():
        major_digits = _digits(major)
        minor_digits = _digits(minor)
        if major_digits and minor_digits:
            digits = major_digits.zfill(6) + minor_digits.zfill(4)
    return digits[-10:] if len(digits) >= 10 else ""


# ----------------------------- Status -----------------------------

def canonical_status(value: Any) -> str:
    """Map brokerage status text onto the fixed vocabulary; unknown values are title-cased."""
    text = re.sub(r"\s+", " ", str(value or "")).strip()
    if not text:
        return ""

    key = re.sub(r"[\s_\-/]+", " ", text.lower()).strip()
    status = STATUS_ALIASES.get(key)
    if status:
        return status.value
    return " ".join(word.capitalize() for word in text.split(" "))


def is_closed_status(status_text: Any, sale_date: str, sale_price: int) -> bool:
    """Sold/closed by status text, or carrying both a sale date and a positive sale price."""
    if SOLD_PAT.search(str(status_text or "")):
        return True
    return bool(sale_date) and sale_price > 0


# ----------------------------- Addresses / regions -----------------------------

def _clean(value: Any) -> str:
    return re.sub(r"\s+", " ", str(value or "")).strip()


def compose_mls_address(row: dict) -> str:
    """'123 N Main St Unit 4, Seattle WA 98103' from the split brokerage address columns."""
    street = " ".join(
        _clean(row.get(col))
        for col in (
            "Street Number",
            "Street Direction",
            "Street Name",
            "Street Suffix",
            "Street Post Direction",
            "Unit",
        )
        if _clean(row.get(col))
    )
    tail = " ".join(
        _clean(row.get(col)) for col in ("City", "State", "Zip Code") if _clean(row.get(col))
    )
    return ", ".join(part for part in (street, tail) if part)


def region_for_file(file_name: str, labels: Optional[dict[str, str]] = None) -> str:
    """
    Region label for a brokerage export.

    "NE Seattle Sale Stats.csv" -> "NE Seattle". Known stems go through the
    label table; others turn '_' into ' / '.
    """
    stem = SALE_STATS_SUFFIX_PAT.sub("", Path(file_name).stem).strip()
    if labels and stem in labels:
        return labels[stem]
    return re.sub(r"\s*_\s*", " / ", stem)


# ----------------------------- Records -----------------------------

def build_county_record(row: dict, index: int) -> CountySaleRecord:
    return CountySaleRecord(
        index=index,
        record_id=_clean(row.get("id")),
        parcel=parcel_digits(row.get("parcelNbr"), row.get("major"), row.get("minor")),
        sale_date=to_iso_date(row.get("saleDate")),
        close_price=max(0, to_int(row.get("closePrice"))),
        address=_clean(row.get("address")),
        list_price_at_pending=max(0, to_int(row.get("listPriceAtPending"))),
        beds=to_int(row.get("beds")),
        baths=parse_money(row.get("baths")),
        sqft=to_int(row.get("sqft")),
        year_built=to_int(row.get("yearBuilt")),
        assessed_value=to_int(row.get("assessedValue")),
        lat=_clean(row.get("lat")),
        lon=_clean(row.get("lon")),
        raw=dict(row),
    )


def build_realtor_record(
    row: dict,
    source_file: str,
    region: str,
    row_index: int,
) -> RealtorListingRecord:
    raw_status = _clean(row.get("Status"))
    status = canonical_status(raw_status)
    parcel = normalize_apn(row.get("APN"))
    selling_date = to_iso_date(row.get("Selling Date"))
    selling_price = to_int(row.get("Selling Price"))
    listing_number = _clean(row.get("Listing Number") or row.get("Listing Number (2)"))

    uid = "|".join([
        source_file,
        listing_number,
        parcel,
        status,
        selling_date,
        str(selling_price),
        str(row_index),
    ])

    return RealtorListingRecord(
        uid=uid,
        source_file=source_file,
        row_index=row_index,
        region=region,
        parcel=parcel,
        status=status,
        closed=is_closed_status(raw_status, selling_date, selling_price),
        listing_number=listing_number,
        listing_date=to_iso_date(row.get("Listing Date")),
        pending_date=to_iso_date(row.get("Pending Date")),
        contractual_date=to_iso_date(row.get("Contractual Date")),
        selling_date=selling_date,
        listing_price=to_int(row.get("Listing Price")),
        original_price=to_int(row.get("Original Price")),
        selling_price=selling_price,
        dom=to_int(row.get("DOM")),
        cdom=to_int(row.get("CDOM")),
        style_code=_clean(row.get("Style Code")),
        subdivision=_clean(row.get("Subdivision")),
        beds=to_int(row.get("Bedrooms")),
        baths=parse_money(row.get("Bathrooms")),
        sqft=to_int(row.get("Square Footage") or row.get("Square Footage Finished")),
        year_built=to_int(row.get("Year Built")),
        mls_address=compose_mls_address(row),
    )

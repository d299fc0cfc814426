"""
Buyer Lens Data - Record Models

Typed records for the two source datasets and the per-record match state.
"""

from dataclasses import dataclass, field
from enum import Enum as PyEnum
from typing import Optional


# Enums
class DataMode(PyEnum):
    PUBLIC_PROXY = "PUBLIC_PROXY"    # County record with no brokerage counterpart
    MLS_ENRICHED = "MLS_ENRICHED"    # Enriched with, or synthesized from, brokerage data


class JoinMethod(PyEnum):
    """How a brokerage record ended up in the output."""
    NONE = ""
    APN_PRICE_DATE_WINDOW = "APN_PRICE_DATE_WINDOW"    # Closed sale, same parcel, date/price window
    APN_LISTING_STUB = "APN_LISTING_STUB"              # Open listing backfilled onto a county sale
    MLS_SOLD_NOT_IN_COUNTY = "MLS_SOLD_NOT_IN_COUNTY"  # Closed sale with no county counterpart
    MLS_STATUS_OPEN = "MLS_STATUS_OPEN"                # Open listing with no county counterpart


class MatchState(PyEnum):
    """Terminal states of a county record after linkage."""
    UNMATCHED = "unmatched"
    CLOSED_MATCHED = "closed_matched"
    STUB_MATCHED = "stub_matched"


class ListingStatus(PyEnum):
    """Canonical brokerage statuses. Anything else passes through title-cased."""
    ACTIVE = "Active"
    PENDING = "Pending"
    PENDING_INSPECTION = "Pending Inspection"
    PENDING_BU_REQUESTED = "Pending BU Requested"
    CONTINGENT = "Contingent"
    SOLD = "Sold"


@dataclass(frozen=True)
class CountySaleRecord:
    """
    One county sale transaction.

    Typed fields are the ones the linkage reads. ``raw`` keeps the full source
    row so every base column survives into the enriched output.
    """
    index: int
    record_id: str
    parcel: str                 # "" when the parcel key is not 10 digits
    sale_date: str              # ISO date, "" when unparsable
    close_price: int
    address: str = ""
    list_price_at_pending: int = 0
    beds: int = 0
    baths: float = 0.0
    sqft: int = 0
    year_built: int = 0
    assessed_value: int = 0
    lat: str = ""
    lon: str = ""
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @property
    def major(self) -> str:
        return self.parcel[:6]

    @property
    def minor(self) -> str:
        return self.parcel[6:]

    @property
    def signature(self) -> tuple[str, str, int]:
        """(parcel, sale date, close price) used to spot verbatim duplicates."""
        return (self.parcel, self.sale_date, self.close_price)

    @property
    def is_matchable(self) -> bool:
        """Both strategies need a valid parcel, a sale date and a positive price."""
        return bool(self.parcel and self.sale_date and self.close_price > 0)


@dataclass(frozen=True)
class RealtorListingRecord:
    """One line of a brokerage export."""
    uid: str
    source_file: str
    row_index: int
    region: str
    parcel: str
    status: str
    closed: bool
    listing_number: str = ""
    listing_date: str = ""
    pending_date: str = ""
    contractual_date: str = ""
    selling_date: str = ""
    listing_price: int = 0
    original_price: int = 0
    selling_price: int = 0
    dom: int = 0
    cdom: int = 0
    style_code: str = ""
    subdivision: str = ""
    beds: int = 0
    baths: float = 0.0
    sqft: int = 0
    year_built: int = 0
    mls_address: str = ""

    @property
    def anchor_date(self) -> str:
        """Date the listing went under contract, best effort."""
        return self.pending_date or self.contractual_date or self.listing_date

    @property
    def sale_signature(self) -> tuple[str, str, int]:
        return (self.parcel, self.selling_date, self.selling_price)

    def __repr__(self) -> str:
        return f"<RealtorListingRecord(uid={self.uid}, status={self.status})>"


@dataclass
class ParcelSnapshot:
    """
    First non-empty descriptive value seen for each column of one parcel.

    Only used to backfill synthesized rows.
    """
    parcel: str
    values: dict[str, str] = field(default_factory=dict)

    def get(self, column: str) -> str:
        return self.values.get(column, "")


@dataclass
class MatchResult:
    """Result of linking one county record to the brokerage data."""
    candidate: Optional[RealtorListingRecord] = None
    join_method: JoinMethod = JoinMethod.NONE
    score: int = 0
    date_lag: Optional[int] = None
    price_diff: Optional[int] = None

    @property
    def is_match(self) -> bool:
        return self.candidate is not None and self.join_method is not JoinMethod.NONE

    @property
    def state(self) -> MatchState:
        if self.join_method is JoinMethod.APN_PRICE_DATE_WINDOW:
            return MatchState.CLOSED_MATCHED
        if self.join_method is JoinMethod.APN_LISTING_STUB:
            return MatchState.STUB_MATCHED
        return MatchState.UNMATCHED

    @property
    def data_mode(self) -> DataMode:
        return DataMode.MLS_ENRICHED if self.is_match else DataMode.PUBLIC_PROXY

    def __repr__(self) -> str:
        if self.candidate:
            return (
                f"<MatchResult({self.candidate.uid}, {self.join_method.value}, "
                f"lag={self.date_lag}, diff={self.price_diff})>"
            )
        return "<MatchResult(no match)>"

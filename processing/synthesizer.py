"""
Standalone rows for brokerage records no county sale claimed.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from config.logging import logger
from processing.candidate_index import CandidateIndex
from processing.enrichment import compute_metrics, format_baths, mls_columns
from processing.models import DataMode, JoinMethod, ParcelSnapshot, RealtorListingRecord
from processing.parcel_snapshot import snapshot_value
from processing.record_linkage import ExclusionSet, MatchingConfig

# Descriptive columns copied straight from the parcel snapshot
SNAPSHOT_FILL_COLUMNS = [
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
    "assessedValue",
]


@dataclass
class SynthesisStats:
    """Statistics from a synthesis pass."""
    closed_added: int = 0
    open_added: int = 0
    county_duplicates_skipped: int = 0
    export_duplicates_skipped: int = 0


def listing_key(listing: RealtorListingRecord) -> tuple:
    """
    Identity of a brokerage sale or listing across export files.

    The same sale can show up in two region exports, or twice in one; those
    copies differ in uid but share this key.
    """
    if listing.closed:
        return ("closed", listing.parcel, listing.selling_date, listing.selling_price, listing.listing_number)
    if listing.listing_number:
        return ("open", listing.parcel, listing.listing_number)
    return ("open", listing.parcel, listing.listing_date, listing.listing_price, listing.status)


class SupplementalSynthesizer:
    """
    Builds MLS-only rows.

    Closed records still unused become MLS_SOLD_NOT_IN_COUNTY rows unless
    their (parcel, sale date, sale price) already appears in the county
    extract. Open records still unused become MLS_STATUS_OPEN rows. Every
    synthesized record is marked used.

    A record whose listing_key was already linked to a county row or already
    synthesized is an export duplicate: it is counted, marked used and
    skipped.
    """

    def __init__(
        self,
        index: CandidateIndex,
        snapshots: dict[str, ParcelSnapshot],
        county_signatures: set[tuple[str, str, int]],
        used: ExclusionSet,
        config: Optional[MatchingConfig] = None,
        linked: Iterable[RealtorListingRecord] = (),
    ):
        self.index = index
        self.snapshots = snapshots
        self.county_signatures = county_signatures
        self.used = used
        self.config = config or MatchingConfig.from_settings()
        self.stats = SynthesisStats()
        self._emitted = {listing_key(listing) for listing in linked}
        self._unnumbered = 0

    def _is_export_duplicate(self, listing: RealtorListingRecord) -> bool:
        key = listing_key(listing)
        if key not in self._emitted:
            self._emitted.add(key)
            return False

        self.used.add(listing)
        self.stats.export_duplicates_skipped += 1
        logger.debug(f"Skipping {listing.uid}: repeat of an earlier export row")
        return True

    def synthesize_closed(self) -> list[dict[str, str]]:
        rows = []
        for listing in self.index.iter_closed():
            if listing in self.used:
                continue
            if listing.sale_signature in self.county_signatures:
                self.stats.county_duplicates_skipped += 1
                logger.debug(f"Skipping {listing.uid}: already in county extract")
                continue
            if self._is_export_duplicate(listing):
                continue

            rows.append(self._build_row(listing, JoinMethod.MLS_SOLD_NOT_IN_COUNTY))
            self.used.add(listing)
            self.stats.closed_added += 1

        logger.info(
            f"Added {self.stats.closed_added} MLS-only sold rows "
            f"({self.stats.county_duplicates_skipped} skipped as county duplicates)"
        )
        return rows

    def synthesize_open(self) -> list[dict[str, str]]:
        rows = []
        for listing in self.index.iter_open():
            if listing in self.used:
                continue
            if self._is_export_duplicate(listing):
                continue
            rows.append(self._build_row(listing, JoinMethod.MLS_STATUS_OPEN))
            self.used.add(listing)
            self.stats.open_added += 1

        logger.info(
            f"Added {self.stats.open_added} open listing rows "
            f"({self.stats.export_duplicates_skipped} export duplicates skipped overall)"
        )
        return rows

    def _synthetic_id(self, listing: RealtorListingRecord) -> str:
        if listing.listing_number:
            return f"MLS-{listing.listing_number}"
        self._unnumbered += 1
        return f"MLS-{listing.parcel}-{self._unnumbered}"

    def _build_row(self, listing: RealtorListingRecord, join_method: JoinMethod) -> dict[str, str]:
        snapshot = self.snapshots.get(listing.parcel)
        closed = join_method is JoinMethod.MLS_SOLD_NOT_IN_COUNTY

        if listing.mls_address:
            address, address_source = listing.mls_address, "MLS_ADDRESS"
        else:
            address = snapshot_value(snapshot, "address")
            address_source = "PARCEL_SNAPSHOT" if address else ""

        row = {
            "dataMode": DataMode.MLS_ENRICHED.value,
            "id": self._synthetic_id(listing),
            "address": address,
            "addressSource": address_source,
            "major": listing.parcel[:6],
            "minor": listing.parcel[6:],
            "parcelNbr": listing.parcel,
            "listDate": listing.listing_date,
            "pendingDate": listing.pending_date,
            "saleDate": listing.selling_date if closed else "",
            "listPriceAtPending": str(listing.listing_price) if listing.listing_price > 0 else "",
            "closePrice": str(listing.selling_price) if closed and listing.selling_price > 0 else "",
            "beds": str(listing.beds) if listing.beds > 0 else snapshot_value(snapshot, "beds"),
            "baths": format_baths(listing.baths) if listing.baths > 0 else snapshot_value(snapshot, "baths"),
            "sqft": str(listing.sqft) if listing.sqft > 0 else snapshot_value(snapshot, "sqft"),
            "yearBuilt": (
                str(listing.year_built) if listing.year_built > 0
                else snapshot_value(snapshot, "yearBuilt")
            ),
        }
        for column in SNAPSHOT_FILL_COLUMNS:
            row[column] = snapshot_value(snapshot, column)

        row.update(mls_columns(listing))
        row["mlsJoinMethod"] = join_method.value
        if not closed:
            row["mlsSellingDate"] = ""
            row["mlsSellingPrice"] = ""

        metrics = compute_metrics(
            listing,
            ultra_hot_max_days=self.config.ultra_hot_max_days,
            hot_market_max_days=self.config.hot_market_max_days,
        )
        row.update(metrics.as_columns())
        return row

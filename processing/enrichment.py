"""
Derived metrics for linked and synthesized rows.

Bid-up, sale-to-list ratios, day lags and the hot market tag, plus the
brokerage columns copied onto each output row.
"""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from rapidfuzz import fuzz

from processing.models import (
    CountySaleRecord,
    DataMode,
    MatchResult,
    RealtorListingRecord,
)
from processing.normalizer import day_diff

ULTRA_HOT_TAG = "ULTRA_HOT_<=5D"
HOT_MARKET_TAG = "HOT_MARKET_<=10D"

# Appended to the base header, in this order, when not already present
ENRICHMENT_COLUMNS = [
    "dataMode",
    "addressSource",
    "mlsListingNumber",
    "mlsStatus",
    "mlsRegion",
    "mlsListDate",
    "mlsPendingDate",
    "mlsSellingDate",
    "mlsContractualDate",
    "mlsListingPrice",
    "mlsSellingPrice",
    "mlsOriginalPrice",
    "mlsDOM",
    "mlsCDOM",
    "mlsStyleCode",
    "mlsSubdivision",
    "mlsDateLagDays",
    "mlsPriceDiff",
    "mlsJoinMethod",
    "mlsAddressScore",
    "mlsDaysToPending",
    "mlsDaysPendingToSale",
    "hotMarketTag",
    "saleToListRatio",
    "saleToOriginalListRatio",
    "bidUpAmount",
    "bidUpPct",
]

# Columns cleared on rows without a brokerage counterpart
MLS_ONLY_COLUMNS = ENRICHMENT_COLUMNS[2:]

RATIO_QUANTUM = Decimal("0.0001")


@dataclass
class EnrichmentMetrics:
    """Metrics for one brokerage record, optionally paired with a county sale."""
    days_to_pending: Optional[int] = None
    days_pending_to_sale: Optional[int] = None
    bid_up_amount: Optional[int] = None
    bid_up_pct: Optional[float] = None
    sale_to_list_ratio: Optional[float] = None
    sale_to_original_ratio: Optional[float] = None
    hot_market_tag: str = ""
    address_score: Optional[float] = None

    def as_columns(self) -> dict[str, str]:
        return {
            "mlsDaysToPending": _fmt_int(self.days_to_pending),
            "mlsDaysPendingToSale": _fmt_int(self.days_pending_to_sale),
            "hotMarketTag": self.hot_market_tag,
            "saleToListRatio": format_ratio(self.sale_to_list_ratio),
            "saleToOriginalListRatio": format_ratio(self.sale_to_original_ratio),
            "bidUpAmount": _fmt_int(self.bid_up_amount),
            "bidUpPct": format_ratio(self.bid_up_pct),
            "mlsAddressScore": "" if self.address_score is None else f"{self.address_score:.1f}",
        }


def _fmt_int(value: Optional[int]) -> str:
    return "" if value is None else str(value)


def _fmt_price(value: int) -> str:
    return str(value) if value > 0 else ""


def format_ratio(value: Optional[float]) -> str:
    """Four decimals, half-up, so 0.04375 reads 0.0438."""
    if value is None:
        return ""
    return str(Decimal(str(value)).quantize(RATIO_QUANTUM, rounding=ROUND_HALF_UP))


def format_baths(value: float) -> str:
    return f"{value:g}"


def hot_market_tag(
    dom: int,
    days_to_pending: Optional[int],
    ultra_hot_max_days: int = 5,
    hot_market_max_days: int = 10,
) -> str:
    """
    Tag fast-moving listings.

    DOM only counts when positive and days-to-pending only when non-negative;
    either signal can trigger a tag.
    """
    signals = []
    if dom > 0:
        signals.append(dom)
    if days_to_pending is not None and days_to_pending >= 0:
        signals.append(days_to_pending)

    if any(days <= ultra_hot_max_days for days in signals):
        return ULTRA_HOT_TAG
    if any(days <= hot_market_max_days for days in signals):
        return HOT_MARKET_TAG
    return ""


def normalize_address(address: str) -> str:
    normalized = re.sub(r"[^\w\s]", " ", (address or "").upper())
    return re.sub(r"\s+", " ", normalized).strip()


def address_similarity(address_a: str, address_b: str) -> Optional[float]:
    """
    Combined fuzzy score (0-100) between two addresses.

    Weights:
    - Token sort ratio: 40% (handles word reordering)
    - Token set ratio: 40% (handles city/state/zip present on one side only)
    - Ratio: 20% (standard similarity)
    """
    norm_a = normalize_address(address_a)
    norm_b = normalize_address(address_b)
    if not norm_a or not norm_b:
        return None

    token_sort = fuzz.token_sort_ratio(norm_a, norm_b)
    token_set = fuzz.token_set_ratio(norm_a, norm_b)
    ratio = fuzz.ratio(norm_a, norm_b)

    return round((token_sort * 0.4) + (token_set * 0.4) + (ratio * 0.2), 1)


def compute_metrics(
    listing: RealtorListingRecord,
    county: Optional[CountySaleRecord] = None,
    ultra_hot_max_days: int = 5,
    hot_market_max_days: int = 10,
) -> EnrichmentMetrics:
    """
    Metrics for a brokerage record, falling back to the county side for
    prices and the sale date when the brokerage record lacks them.
    """
    county_close = county.close_price if county else 0
    county_list = county.list_price_at_pending if county else 0
    county_sale_date = county.sale_date if county else ""

    close = listing.selling_price if listing.selling_price > 0 else county_close
    list_price = listing.listing_price if listing.listing_price > 0 else county_list
    sale_date = listing.selling_date or county_sale_date

    days_to_pending = day_diff(listing.listing_date, listing.pending_date)
    metrics = EnrichmentMetrics(
        days_to_pending=days_to_pending,
        days_pending_to_sale=day_diff(listing.pending_date, sale_date),
        hot_market_tag=hot_market_tag(
            listing.dom, days_to_pending, ultra_hot_max_days, hot_market_max_days
        ),
    )

    if close > 0 and list_price > 0:
        metrics.bid_up_amount = close - list_price
        metrics.bid_up_pct = metrics.bid_up_amount / list_price
        metrics.sale_to_list_ratio = close / list_price
    if close > 0 and listing.original_price > 0:
        metrics.sale_to_original_ratio = close / listing.original_price

    if county is not None:
        metrics.address_score = address_similarity(county.address, listing.mls_address)

    return metrics


def mls_columns(listing: RealtorListingRecord, result: Optional[MatchResult] = None) -> dict[str, str]:
    """Brokerage fields as output columns."""
    columns = {
        "mlsListingNumber": listing.listing_number,
        "mlsStatus": listing.status,
        "mlsRegion": listing.region,
        "mlsListDate": listing.listing_date,
        "mlsPendingDate": listing.pending_date,
        "mlsSellingDate": listing.selling_date,
        "mlsContractualDate": listing.contractual_date,
        "mlsListingPrice": _fmt_price(listing.listing_price),
        "mlsSellingPrice": _fmt_price(listing.selling_price),
        "mlsOriginalPrice": _fmt_price(listing.original_price),
        "mlsDOM": _fmt_price(listing.dom),
        "mlsCDOM": _fmt_price(listing.cdom),
        "mlsStyleCode": listing.style_code,
        "mlsSubdivision": listing.subdivision,
        "mlsDateLagDays": "",
        "mlsPriceDiff": "",
        "mlsJoinMethod": "",
    }
    if result is not None and result.is_match:
        columns["mlsDateLagDays"] = _fmt_int(result.date_lag)
        columns["mlsPriceDiff"] = _fmt_int(result.price_diff)
        columns["mlsJoinMethod"] = result.join_method.value
    return columns


def enrich_county_row(
    county: CountySaleRecord,
    result: MatchResult,
    ultra_hot_max_days: int = 5,
    hot_market_max_days: int = 10,
) -> dict[str, str]:
    """
    Output row for one county record.

    Unmatched rows keep their base values with blank brokerage columns.
    Matched rows take dates, prices and descriptors from the brokerage side
    where it has them.
    """
    row = {key: "" if value is None else str(value) for key, value in county.raw.items()}

    if not result.is_match:
        row["dataMode"] = row.get("dataMode") or DataMode.PUBLIC_PROXY.value
        for column in MLS_ONLY_COLUMNS:
            row[column] = ""
        return row

    listing = result.candidate
    metrics = compute_metrics(listing, county, ultra_hot_max_days, hot_market_max_days)

    row["dataMode"] = result.data_mode.value
    if listing.mls_address:
        row["address"] = listing.mls_address
        row["addressSource"] = "MLS_ADDRESS"
    row["listDate"] = listing.listing_date or row.get("listDate", "")
    row["pendingDate"] = listing.pending_date or row.get("pendingDate", "")
    row["saleDate"] = listing.selling_date or row.get("saleDate", "")
    if listing.listing_price > 0:
        row["listPriceAtPending"] = str(listing.listing_price)
    if listing.selling_price > 0:
        row["closePrice"] = str(listing.selling_price)
    if listing.beds > 0:
        row["beds"] = str(listing.beds)
    if listing.baths > 0:
        row["baths"] = format_baths(listing.baths)
    if listing.sqft > 0:
        row["sqft"] = str(listing.sqft)
    if listing.year_built > 0:
        row["yearBuilt"] = str(listing.year_built)

    row.update(mls_columns(listing, result))
    row.update(metrics.as_columns())
    return row

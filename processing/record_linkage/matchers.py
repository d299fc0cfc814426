"""
Matching strategies for linking county sales to brokerage records.
"""

from typing import Iterable, Optional

from processing.models import (
    CountySaleRecord,
    JoinMethod,
    ListingStatus,
    MatchResult,
    RealtorListingRecord,
)
from processing.normalizer import day_diff, parse_date

# Lag dominates the composite scores; price (and status) only break ties
LAG_WEIGHT = 100000
STATUS_WEIGHT = 10000

# How close an open listing's status is to a closed sale
STUB_STATUS_RANK = {
    ListingStatus.PENDING.value: 0,
    ListingStatus.PENDING_INSPECTION.value: 1,
    ListingStatus.PENDING_BU_REQUESTED.value: 2,
    ListingStatus.CONTINGENT.value: 3,
    ListingStatus.ACTIVE.value: 4,
}
STUB_STATUS_RANK_OTHER = 5


class ExclusionSet:
    """
    Brokerage record ids already consumed in this run.

    Owned by one linker and handed to every matcher call. It only grows.
    """

    def __init__(self, uids: Iterable[str] = ()):
        self._uids: set[str] = set(uids)

    def __contains__(self, record: object) -> bool:
        uid = record.uid if isinstance(record, RealtorListingRecord) else record
        return uid in self._uids

    def add(self, record: RealtorListingRecord) -> None:
        if record.uid in self._uids:
            raise ValueError(f"Brokerage record already consumed: {record.uid}")
        self._uids.add(record.uid)

    def __len__(self) -> int:
        return len(self._uids)


def status_rank(status: str) -> int:
    return STUB_STATUS_RANK.get(status, STUB_STATUS_RANK_OTHER)


class ClosedSaleMatcher:
    """
    Matches a county sale against closed brokerage sales on the same parcel.

    A candidate survives when its selling date is within ``max_date_lag_days``
    of the county sale date and its selling price is within
    ``price_tolerance_abs`` dollars or ``price_tolerance_pct`` of the county
    price. The survivor with the lowest ``lag * 100000 + priceDiff`` wins;
    equal scores keep the earlier candidate.
    """

    def __init__(
        self,
        max_date_lag_days: int = 45,
        price_tolerance_abs: int = 5000,
        price_tolerance_pct: float = 0.005,
    ):
        self.max_date_lag_days = max_date_lag_days
        self.price_tolerance_abs = price_tolerance_abs
        self.price_tolerance_pct = price_tolerance_pct

    def price_ok(self, price_diff: int, close_price: int) -> bool:
        if price_diff <= self.price_tolerance_abs:
            return True
        return close_price > 0 and (price_diff / close_price) <= self.price_tolerance_pct

    def match(
        self,
        county: CountySaleRecord,
        candidates: Iterable[RealtorListingRecord],
        used: ExclusionSet,
    ) -> MatchResult:
        """
        Find the best closed-sale candidate. Does not mark anything used.

        Returns:
            MatchResult tagged APN_PRICE_DATE_WINDOW, or an empty result
        """
        if not county.is_matchable:
            return MatchResult()

        best: Optional[MatchResult] = None
        for candidate in candidates:
            if candidate in used:
                continue
            if not candidate.selling_price or candidate.selling_price <= 0:
                continue
            if parse_date(candidate.selling_date) is None:
                continue

            lag = day_diff(county.sale_date, candidate.selling_date)
            if lag is None:
                continue
            date_lag = abs(lag)
            if date_lag > self.max_date_lag_days:
                continue

            price_diff = abs(candidate.selling_price - county.close_price)
            if not self.price_ok(price_diff, county.close_price):
                continue

            score = date_lag * LAG_WEIGHT + price_diff
            if best is None or score < best.score:
                best = MatchResult(
                    candidate=candidate,
                    join_method=JoinMethod.APN_PRICE_DATE_WINDOW,
                    score=score,
                    date_lag=date_lag,
                    price_diff=price_diff,
                )

        return best or MatchResult()


class ListingStubMatcher:
    """
    Fallback: matches a county sale against open listings on the same parcel.

    The listing's anchor date (pending, else contractual, else listing date)
    must fall 0..``max_lag_days`` days before the county sale, and its
    listing price must be within ``max_price_diff_ratio`` of the county price.

    Score = lag * 100000 + status rank * 10000 + priceDiff, so the closest
    anchor wins, then the status nearest to a sale, then the closest price.
    """

    def __init__(self, max_lag_days: int = 120, max_price_diff_ratio: float = 0.5):
        self.max_lag_days = max_lag_days
        self.max_price_diff_ratio = max_price_diff_ratio

    def match(
        self,
        county: CountySaleRecord,
        candidates: Iterable[RealtorListingRecord],
        used: ExclusionSet,
    ) -> MatchResult:
        if not county.is_matchable:
            return MatchResult()

        best: Optional[MatchResult] = None
        for candidate in candidates:
            if candidate in used:
                continue
            if candidate.listing_price <= 0:
                continue

            lag = day_diff(candidate.anchor_date, county.sale_date)
            if lag is None or lag < 0 or lag > self.max_lag_days:
                continue

            price_diff = abs(candidate.listing_price - county.close_price)
            if price_diff / county.close_price > self.max_price_diff_ratio:
                continue

            score = lag * LAG_WEIGHT + status_rank(candidate.status) * STATUS_WEIGHT + price_diff
            if best is None or score < best.score:
                best = MatchResult(
                    candidate=candidate,
                    join_method=JoinMethod.APN_LISTING_STUB,
                    score=score,
                    date_lag=lag,
                    price_diff=price_diff,
                )

        return best or MatchResult()

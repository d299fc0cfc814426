"""
Record Linker

Runs the closed-sale matcher, then the listing-stub fallback, over every
county record in source order with one shared exclusion set.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from config.logging import logger
from config.settings import settings
from processing.candidate_index import CandidateIndex
from processing.models import CountySaleRecord, MatchResult, MatchState
from processing.record_linkage.matchers import (
    ClosedSaleMatcher,
    ExclusionSet,
    ListingStubMatcher,
)


@dataclass
class MatchingConfig:
    """Tolerances for linkage and enrichment."""
    # Closed-sale window
    max_date_lag_days: int = 45
    price_tolerance_abs: int = 5000
    price_tolerance_pct: float = 0.005

    # Listing-stub window
    stub_max_lag_days: int = 120
    stub_max_price_diff_ratio: float = 0.5

    # Hot market tags
    ultra_hot_max_days: int = 5
    hot_market_max_days: int = 10

    @classmethod
    def from_settings(cls) -> "MatchingConfig":
        return cls(
            max_date_lag_days=settings.MAX_DATE_LAG_DAYS,
            price_tolerance_abs=settings.PRICE_TOLERANCE_ABS,
            price_tolerance_pct=settings.PRICE_TOLERANCE_PCT,
            stub_max_lag_days=settings.STUB_MAX_LAG_DAYS,
            stub_max_price_diff_ratio=settings.STUB_MAX_PRICE_DIFF_RATIO,
            ultra_hot_max_days=settings.ULTRA_HOT_MAX_DAYS,
            hot_market_max_days=settings.HOT_MARKET_MAX_DAYS,
        )


@dataclass
class LinkageStats:
    """Statistics from a linkage run."""
    county_records: int = 0
    not_matchable: int = 0
    closed_matches: int = 0
    stub_matches: int = 0
    unmatched: int = 0


class RecordLinker:
    """
    Greedy, order-dependent linker.

    Resolution strategy per county record:
    1. Skip records without a valid parcel, sale date or positive price
    2. Closed-sale match against the parcel's closed bucket
    3. If nothing closed fits, listing-stub match against the open bucket
    4. Mark the winner used so no later county record can take it

    Usage:
        linker = RecordLinker(index)
        results = linker.link_all(county_records)
    """

    def __init__(
        self,
        index: CandidateIndex,
        config: Optional[MatchingConfig] = None,
        used: Optional[ExclusionSet] = None,
    ):
        self.index = index
        self.config = config or MatchingConfig.from_settings()
        self.used = used if used is not None else ExclusionSet()
        self.closed_matcher = ClosedSaleMatcher(
            max_date_lag_days=self.config.max_date_lag_days,
            price_tolerance_abs=self.config.price_tolerance_abs,
            price_tolerance_pct=self.config.price_tolerance_pct,
        )
        self.stub_matcher = ListingStubMatcher(
            max_lag_days=self.config.stub_max_lag_days,
            max_price_diff_ratio=self.config.stub_max_price_diff_ratio,
        )
        self.stats = LinkageStats()

    def link(self, county: CountySaleRecord) -> MatchResult:
        """Link one county record; the winner, if any, is marked used."""
        self.stats.county_records += 1

        if not county.is_matchable:
            self.stats.not_matchable += 1
            self.stats.unmatched += 1
            return MatchResult()

        result = self.closed_matcher.match(
            county, self.index.closed_candidates(county.parcel), self.used
        )
        if not result.is_match:
            result = self.stub_matcher.match(
                county, self.index.open_candidates(county.parcel), self.used
            )

        if result.is_match:
            self.used.add(result.candidate)
            if result.state is MatchState.CLOSED_MATCHED:
                self.stats.closed_matches += 1
            else:
                self.stats.stub_matches += 1
            logger.debug(f"Linked county record {county.record_id}: {result}")
        else:
            self.stats.unmatched += 1

        return result

    def link_all(self, records: Iterable[CountySaleRecord]) -> list[MatchResult]:
        """Link every county record in the order given."""
        results = [self.link(record) for record in records]

        logger.info(
            f"Linkage: {self.stats.closed_matches} closed, {self.stats.stub_matches} stub, "
            f"{self.stats.unmatched} unmatched of {self.stats.county_records} county records"
        )
        return results

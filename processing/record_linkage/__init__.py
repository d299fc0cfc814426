"""
Record Linkage Module

Greedy parcel-keyed linkage of county sales to brokerage records:
- Closed-sale matching inside a date/price window
- Listing-stub fallback against open listings
- One exclusion set per run so each brokerage record is used once
"""

from processing.record_linkage.resolver import LinkageStats, MatchingConfig, RecordLinker
from processing.record_linkage.matchers import (
    ClosedSaleMatcher,
    ExclusionSet,
    ListingStubMatcher,
    status_rank,
)

__all__ = [
    "RecordLinker",
    "MatchingConfig",
    "LinkageStats",
    "ClosedSaleMatcher",
    "ListingStubMatcher",
    "ExclusionSet",
    "status_rank",
]

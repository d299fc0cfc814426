"""
Parcel-keyed candidate index over brokerage records.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Iterator

from processing.models import RealtorListingRecord


@dataclass
class IndexStats:
    """What happened to each record while building the index."""
    parsed: int = 0
    invalid_parcel: int = 0
    closed: int = 0
    open: int = 0
    unindexed: int = 0


class CandidateIndex:
    """
    Splits brokerage records into a closed bucket and an open bucket per parcel.

    - closed: closed flag set, with a sale date and a positive sale price
    - open: closed flag not set, with a positive listing price

    Records with an invalid parcel key, or that fit neither bucket, are
    counted and left out. Buckets keep first-seen parcel order and input order
    within a parcel; synthesis depends on that order.
    """

    def __init__(self, records: Iterable[RealtorListingRecord] = ()):
        self.closed: dict[str, list[RealtorListingRecord]] = defaultdict(list)
        self.open: dict[str, list[RealtorListingRecord]] = defaultdict(list)
        self.stats = IndexStats()
        for record in records:
            self.add(record)

    def add(self, record: RealtorListingRecord) -> None:
        self.stats.parsed += 1

        if not record.parcel:
            self.stats.invalid_parcel += 1
            return

        if record.closed:
            if record.selling_date and record.selling_price > 0:
                self.closed[record.parcel].append(record)
                self.stats.closed += 1
                return
        elif record.listing_price > 0:
            self.open[record.parcel].append(record)
            self.stats.open += 1
            return

        self.stats.unindexed += 1

    def closed_candidates(self, parcel: str) -> list[RealtorListingRecord]:
        return self.closed.get(parcel, []) if parcel else []

    def open_candidates(self, parcel: str) -> list[RealtorListingRecord]:
        return self.open.get(parcel, []) if parcel else []

    def iter_closed(self) -> Iterator[RealtorListingRecord]:
        for bucket in self.closed.values():
            yield from bucket

    def iter_open(self) -> Iterator[RealtorListingRecord]:
        for bucket in self.open.values():
            yield from bucket

    def __len__(self) -> int:
        return self.stats.closed + self.stats.open

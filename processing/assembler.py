"""
Output assembly: fixed column order and fixed row-group order.
"""

from typing import Iterable

from processing.enrichment import ENRICHMENT_COLUMNS


def output_columns(base_headers: Iterable[str]) -> list[str]:
    """Base header in its own order, then each enrichment column it lacks."""
    columns = list(base_headers)
    for column in ENRICHMENT_COLUMNS:
        if column not in columns:
            columns.append(column)
    return columns


def assemble_rows(
    county_rows: list[dict[str, str]],
    closed_rows: list[dict[str, str]],
    open_rows: list[dict[str, str]],
) -> list[dict[str, str]]:
    """County rows, then MLS-only sold rows, then open listing rows."""
    return [*county_rows, *closed_rows, *open_rows]

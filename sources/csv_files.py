"""
CSV helpers shared by the county and brokerage loaders.
"""

import csv
import os
import tempfile
from pathlib import Path
from typing import Iterable, Iterator, Optional

from processing.errors import MissingInputFile, MissingRequiredColumn


def require_file(path: Path, label: str = "input file") -> Path:
    path = Path(path)
    if not path.is_file():
        raise MissingInputFile(path, label)
    return path


def missing_columns(headers: Iterable[str], required: Iterable[str]) -> list[str]:
    """Required columns absent from headers, in required order."""
    present = set(headers)
    return [column for column in required if column not in present]


def require_columns(headers: Iterable[str], required: Iterable[str], source: Optional[str] = None) -> None:
    missing = missing_columns(headers, required)
    if missing:
        raise MissingRequiredColumn(missing, source)


def disambiguate_headers(headers: Iterable[str]) -> list[str]:
    """Trim header names and suffix repeats: 'Listing Number', 'Listing Number (2)', ..."""
    seen: dict[str, int] = {}
    result = []
    for header in headers:
        key = str(header or "").strip()
        count = seen.get(key, 0) + 1
        seen[key] = count
        result.append(key if count == 1 else f"{key} ({count})")
    return result


def _is_blank(cells: list[str]) -> bool:
    return not any(cell.strip() for cell in cells)


def iter_csv_cells(path: Path) -> Iterator[list[str]]:
    """Raw non-blank rows, values trimmed."""
    with open(path, "r", newline="", encoding="utf-8-sig", errors="replace") as f:
        for cells in csv.reader(f):
            if _is_blank(cells):
                continue
            yield [cell.strip() for cell in cells]


def read_dict_rows(path: Path) -> tuple[list[str], list[dict[str, str]]]:
    """Header and rows of a plain CSV whose first non-blank row is the header."""
    rows = iter_csv_cells(path)
    headers = disambiguate_headers(next(rows, []))
    records = [
        {header: cells[i] if i < len(cells) else "" for i, header in enumerate(headers)}
        for cells in rows
    ]
    return headers, records


def read_header(path: Path) -> list[str]:
    return disambiguate_headers(next(iter_csv_cells(path), []))


def write_csv(path: Path, headers: list[str], rows: Iterable[dict]) -> Path:
    """
    Write rows under a fixed header.

    Values holding a comma, quote or newline are quoted with inner quotes
    doubled. The file is written beside the target and moved into place, so
    a failed write never leaves a partial output.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
            writer.writerow(headers)
            for row in rows:
                writer.writerow(["" if row.get(h) is None else str(row.get(h)) for h in headers])
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    return path

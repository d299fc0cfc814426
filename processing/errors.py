"""
Fatal pipeline errors.

Anything raised from here aborts the run before output is written. Per-row
problems (bad dates, bad numbers) never raise; they are coerced during
normalization and show up in the report counts instead.
"""

from pathlib import Path
from typing import Iterable, Optional


class PipelineError(Exception):
    """Base class for errors that abort a refresh run."""


class MissingInputFile(PipelineError):
    """A required source file or directory does not exist."""

    def __init__(self, path: Path, label: str = "input"):
        self.path = Path(path)
        self.label = label
        super().__init__(f"Missing {label}: {self.path}")


class MissingRequiredColumn(PipelineError):
    """One or more required columns are absent from a source file."""

    def __init__(self, columns: Iterable[str], source: Optional[str] = None):
        self.columns = list(columns)
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Missing required columns{where}: {', '.join(self.columns)}")


class NoCandidateFilesFound(PipelineError):
    """The brokerage export directory holds no CSV files."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        super().__init__(f"No brokerage CSV files found in {self.directory}")

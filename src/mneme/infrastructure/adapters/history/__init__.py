# Infrastructure History Adapters Package
from pathlib import Path

from mneme.domain.optimization.ports import ReviewHistorySource

from .csv_history import CsvReviewHistory
from .json_history import JsonReviewHistory


def open_review_history(path: Path) -> ReviewHistorySource:
    """Pick the history adapter from the file suffix."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return CsvReviewHistory(path)
    if suffix in (".json", ".jsonl", ".ndjson"):
        return JsonReviewHistory(path)
    raise ValueError(f"Unsupported review history format: {path.name}")


__all__ = ["JsonReviewHistory", "CsvReviewHistory", "open_review_history"]

"""
CSV Review History: Infrastructure adapter for spreadsheet exports.

Implements ReviewHistorySource over a CSV file with a header row using the
same column names as the JSON records (cardId/card_id, rating, state,
reviewedAt/occurred_at, optional elapsedDays/elapsed_days).
"""

import csv
import logging
from pathlib import Path

from mneme.domain.optimization.ports import ReviewHistorySource
from mneme.domain.scheduling.models import ReviewEvent

logger = logging.getLogger(__name__)


class CsvReviewHistory(ReviewHistorySource):
    def __init__(self, path: Path):
        self.path = Path(path)

    def load_reviews(self) -> list[ReviewEvent]:
        events = []
        with self.path.open(newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames:
                raise ValueError(f"{self.path}: missing header row")
            # Row numbers count the header as row 1.
            for rowno, row in enumerate(reader, start=2):
                record = {k.strip(): (v or "").strip() for k, v in row.items() if k}
                if not any(record.values()):
                    continue
                try:
                    events.append(ReviewEvent.from_dict(record))
                except (ValueError, TypeError) as e:
                    raise ValueError(f"{self.path}: row {rowno}: {e}") from e

        logger.info(f"Loaded {len(events)} review events from {self.path}")
        return events

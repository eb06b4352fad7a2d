"""
JSON Review History: Infrastructure adapter for exported review logs.

Implements ReviewHistorySource over either a JSON array of event objects or
a JSON Lines file with one event object per line.
"""

import json
import logging
from pathlib import Path
from typing import Any

from mneme.domain.optimization.ports import ReviewHistorySource
from mneme.domain.scheduling.models import ReviewEvent

logger = logging.getLogger(__name__)


class JsonReviewHistory(ReviewHistorySource):
    """
    Reads review events from a .json or .jsonl file.

    A file whose first non-blank character is '[' is parsed as one array;
    anything else is read line by line.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_reviews(self) -> list[ReviewEvent]:
        text = self.path.read_text(encoding="utf-8")
        if text.lstrip().startswith("["):
            events = self._parse_array(text)
        else:
            events = self._parse_lines(text)
        logger.info(f"Loaded {len(events)} review events from {self.path}")
        return events

    def _parse_array(self, text: str) -> list[ReviewEvent]:
        try:
            records = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"{self.path}: invalid JSON at line {e.lineno}: {e.msg}") from e

        events = []
        for index, record in enumerate(records):
            events.append(self._to_event(record, f"item {index}"))
        return events

    def _parse_lines(self, text: str) -> list[ReviewEvent]:
        events = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{self.path}: invalid JSON on line {lineno}: {e.msg}") from e
            events.append(self._to_event(record, f"line {lineno}"))
        return events

    def _to_event(self, record: Any, where: str) -> ReviewEvent:
        if not isinstance(record, dict):
            raise ValueError(f"{self.path}: {where} is not an object")
        try:
            return ReviewEvent.from_dict(record)
        except (ValueError, TypeError) as e:
            raise ValueError(f"{self.path}: {where}: {e}") from e

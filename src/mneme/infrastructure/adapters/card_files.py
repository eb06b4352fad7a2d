"""JSON card files used by the CLI to carry a card's memory state between runs."""

import json
from datetime import datetime
from pathlib import Path

from mneme.domain.scheduling.models import Card


def load_card(path: Path, now: datetime) -> Card:
    """
    Read a card from `path`.

    A missing or empty file yields a New card due at `now`, named after the file.
    """
    path = Path(path)
    if not path.exists() or not path.read_text(encoding="utf-8").strip():
        return Card.new(due=now, card_id=path.stem)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path}: invalid JSON at line {e.lineno}: {e.msg}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a card object")

    try:
        return Card.from_dict(data)
    except (KeyError, TypeError) as e:
        raise ValueError(f"{path}: malformed card: {e}") from e


def save_card(path: Path, card: Card) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(card.to_dict(), indent=2) + "\n", encoding="utf-8")

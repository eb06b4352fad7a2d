# Infrastructure Adapters Package
from .card_files import load_card, save_card
from .history import CsvReviewHistory, JsonReviewHistory, open_review_history
from .parameter_store import ParameterStore

__all__ = [
    "JsonReviewHistory",
    "CsvReviewHistory",
    "open_review_history",
    "ParameterStore",
    "load_card",
    "save_card",
]

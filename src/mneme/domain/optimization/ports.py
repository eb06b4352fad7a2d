"""
Ports (interfaces) for review-history retrieval.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from mneme.domain.scheduling.models import ReviewEvent


class ReviewHistorySource(ABC):
    """
    Port for fetching a user's review history.

    Implementations:
        - JsonReviewHistory: JSON array or JSON Lines export.
        - CsvReviewHistory: CSV export with a header row.
    """

    @abstractmethod
    def load_reviews(self) -> list[ReviewEvent]:
        """
        Fetch every review event.

        Returns:
            A caller-owned list of ReviewEvent objects, in any order.
        """
        pass

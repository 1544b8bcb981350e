"""
Ports (interfaces) for the stats store.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date

from .models import DailyStatsRecord, SessionStats


class StatsRepository(ABC):
    """
    Port for durable per-deck statistics.

    Implementations must be safe to call concurrently from many sessions.
    Storage-backed implementations raise PersistenceError on storage failure.

    Implementations:
        - InMemoryStatsRepository: Dictionaries guarded by per-deck locks.
        - SqliteStatsRepository: SQLite upserts, one transaction per call.
    """

    @abstractmethod
    def append_session(self, stats: SessionStats, day: date) -> None:
        """
        Fold one finished session into the (deck, day) rollup and the known-card set.

        A session with ``viewed <= 0`` is ignored entirely. Retrying a call
        that already succeeded counts the session twice.
        """
        pass

    @abstractmethod
    def get_daily_stats(self, deck_id: int) -> list[DailyStatsRecord]:
        """
        Return the deck's daily rollups ordered by date ascending.

        Returns an empty list for an unknown deck.
        """
        pass

    @abstractmethod
    def get_known_card_ids(self, deck_id: int) -> set[int]:
        """Return a caller-owned copy of the deck's known-card set."""
        pass

    @abstractmethod
    def set_card_known(self, deck_id: int, card_id: int, known: bool) -> None:
        """Add or remove one card from the known set. Idempotent."""
        pass

    @abstractmethod
    def toggle_card_known(self, deck_id: int, card_id: int) -> bool:
        """Atomically flip a card's known status and return the new status."""
        pass

    @abstractmethod
    def reset_deck_progress(self, deck_id: int) -> None:
        """Clear the deck's known-card set. Daily history is kept."""
        pass

    def is_card_known(self, deck_id: int, card_id: int) -> bool:
        return card_id in self.get_known_card_ids(deck_id)

    def get_known_card_ids_batch(self, deck_ids: Iterable[int]) -> dict[int, set[int]]:
        """Known sets for several decks; decks with nothing known are omitted."""
        result: dict[int, set[int]] = {}
        for deck_id in dict.fromkeys(deck_ids):
            known = self.get_known_card_ids(deck_id)
            if known:
                result[deck_id] = known
        return result

"""
In-Memory Stats Repository: Infrastructure adapter backed by dictionaries.

Implements StatsRepository for tests, the CLI default backend, and any
single-process deployment that does not need durability.
"""

import threading
from datetime import date

from flashdeck.domain.stats.models import DailyStatsRecord, SessionStats
from flashdeck.domain.stats.ports import StatsRepository


class InMemoryStatsRepository(StatsRepository):
    """
    Keeps daily records and known-card sets in process memory.

    Every deck has its own lock guarding both its daily records and its known
    set, so appends to one deck are linearizable while different decks never
    contend. The lock registry itself is guarded by a short-lived lock that is
    only held while looking up or creating a deck's lock.
    """

    def __init__(self) -> None:
        self._daily: dict[int, dict[date, DailyStatsRecord]] = {}
        self._known: dict[int, set[int]] = {}
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, deck_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(deck_id)
            if lock is None:
                lock = self._locks[deck_id] = threading.Lock()
            return lock

    def append_session(self, stats: SessionStats, day: date) -> None:
        if stats.viewed <= 0:
            return

        with self._lock_for(stats.deck_id):
            by_date = self._daily.setdefault(stats.deck_id, {})
            existing = by_date.get(day)
            if existing is None:
                by_date[day] = DailyStatsRecord.first(day, stats)
            else:
                by_date[day] = existing.merged_with(stats)

            if stats.known_card_ids_delta:
                self._known.setdefault(stats.deck_id, set()).update(stats.known_card_ids_delta)

    def get_daily_stats(self, deck_id: int) -> list[DailyStatsRecord]:
        with self._lock_for(deck_id):
            records = list(self._daily.get(deck_id, {}).values())
        return sorted(records, key=lambda r: r.date)

    def get_known_card_ids(self, deck_id: int) -> set[int]:
        with self._lock_for(deck_id):
            return set(self._known.get(deck_id, ()))

    def set_card_known(self, deck_id: int, card_id: int, known: bool) -> None:
        with self._lock_for(deck_id):
            known_ids = self._known.setdefault(deck_id, set())
            if known:
                known_ids.add(card_id)
            else:
                known_ids.discard(card_id)

    def toggle_card_known(self, deck_id: int, card_id: int) -> bool:
        with self._lock_for(deck_id):
            known_ids = self._known.setdefault(deck_id, set())
            if card_id in known_ids:
                known_ids.discard(card_id)
                return False
            known_ids.add(card_id)
            return True

    def reset_deck_progress(self, deck_id: int) -> None:
        with self._lock_for(deck_id):
            self._known.pop(deck_id, None)

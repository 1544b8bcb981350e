"""
Stats Service: Application layer orchestrator.

Coordinates recording sessions into the stats repository, known-card
bookkeeping, and aggregate queries over daily records.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date

from flashdeck.consts import AUDIT_LOGGER_NAME
from flashdeck.domain.constants import PERCENT_MAX, PERCENT_MIN
from flashdeck.domain.errors import DeckNotFoundError
from flashdeck.domain.ports import CardSource
from flashdeck.domain.practice.session import utc_now
from flashdeck.domain.stats.models import DailyStatsRecord, DeckAggregate, SessionStats
from flashdeck.domain.stats.ports import StatsRepository

from .metrics_calculator import MetricsCalculator

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)


def _today() -> date:
    return utc_now().date()


class StatsService:
    """
    Application service for practice statistics.

    Follows Dependency Inversion: depends on the StatsRepository abstraction,
    not concrete adapter implementations. Repository errors (PersistenceError)
    propagate unchanged.
    """

    def __init__(
        self,
        stats_repo: StatsRepository,
        card_source: CardSource | None = None,
        calculator: MetricsCalculator | None = None,
        today: Callable[[], date] | None = None,
    ):
        """
        Args:
            stats_repo: The repository (port) holding daily records and known sets.
            card_source: Optional deck lookup used to validate resets.
            calculator: Optional custom calculator; uses default if not provided.
            today: Optional date provider; defaults to the current UTC date.
        """
        self._repo = stats_repo
        self._cards = card_source
        self._calc = calculator or MetricsCalculator()
        self._today = today or _today

    def record_session(self, stats: SessionStats) -> bool:
        """
        Merge a finished session into today's rollup for its deck.

        Returns False (and records nothing) for a session with no viewed cards.
        """
        logger.debug(
            f"Recording session: deck_id={stats.deck_id}, viewed={stats.viewed}, "
            f"correct={stats.correct}, repeat={stats.repeat}, hard={stats.hard}"
        )
        if stats.viewed <= 0:
            logger.warning(f"Skipped recording session with no viewed cards: deck_id={stats.deck_id}")
            return False

        self._repo.append_session(stats, self._today())
        logger.info(
            f"Session recorded: deck_id={stats.deck_id}, viewed={stats.viewed}, "
            f"correct={stats.correct}, hard={stats.hard}, repeat={stats.repeat}, "
            f"duration_ms={stats.session_duration_ms}, "
            f"known_delta={len(stats.known_card_ids_delta)}"
        )
        return True

    def get_daily_stats(self, deck_id: int) -> list[DailyStatsRecord]:
        return self._repo.get_daily_stats(deck_id)

    def get_known_card_ids(self, deck_id: int) -> set[int]:
        return self._repo.get_known_card_ids(deck_id)

    def get_known_card_ids_batch(self, deck_ids: Iterable[int]) -> dict[int, set[int]]:
        deck_ids = list(deck_ids)
        if not deck_ids:
            logger.debug("get_known_card_ids_batch called with no decks, returning empty map")
            return {}
        return self._repo.get_known_card_ids_batch(deck_ids)

    def is_card_known(self, deck_id: int, card_id: int) -> bool:
        return self._repo.is_card_known(deck_id, card_id)

    def set_card_known(self, deck_id: int, card_id: int, known: bool) -> None:
        logger.debug(f"Setting card {card_id} as {'KNOWN' if known else 'UNKNOWN'} for deck {deck_id}")
        self._repo.set_card_known(deck_id, card_id, known)
        logger.info(
            f"Card marked as {'known' if known else 'unknown'} in deck {deck_id}: card_id={card_id}"
        )

    def toggle_card_known(self, deck_id: int, card_id: int) -> bool:
        status = self._repo.toggle_card_known(deck_id, card_id)
        logger.info(
            f"Card toggled to {'known' if status else 'unknown'} in deck {deck_id}: card_id={card_id}"
        )
        return status

    def get_deck_progress_percent(self, deck_id: int, deck_size: int) -> int:
        """
        Share of the deck's cards currently known, as a whole percentage.
        """
        if deck_size <= 0:
            return 0
        known = len(self._repo.get_known_card_ids(deck_id))
        percent = round(100.0 * known / deck_size)
        return max(PERCENT_MIN, min(PERCENT_MAX, percent))

    def reset_deck_progress(self, deck_id: int) -> int:
        """
        Forget every known card of a deck. Session history is preserved.

        Returns:
            Number of known cards that were cleared.

        Raises:
            DeckNotFoundError: A card source is configured and has no such deck.
        """
        logger.debug(f"Resetting progress for deck: {deck_id}")
        deck = None
        if self._cards is not None:
            deck = self._cards.get_deck(deck_id)
            if deck is None:
                raise DeckNotFoundError(f"Deck not found: {deck_id}")

        cleared = len(self._repo.get_known_card_ids(deck_id))
        self._repo.reset_deck_progress(deck_id)

        title = deck.title if deck else "?"
        owner_id = deck.owner_id if deck else "?"
        audit_logger.warning(
            f"Deck progress reset: deck_id={deck_id}, title={title!r}, "
            f"owner_id={owner_id}, cleared_cards={cleared}"
        )
        logger.info(f"Deck progress reset successfully: deck_id={deck_id}, cleared {cleared} known cards")
        return cleared

    def get_deck_aggregate(self, deck_id: int) -> DeckAggregate:
        return self._calc.aggregate(self._repo.get_daily_stats(deck_id), self._today())

    def get_deck_aggregates(self, deck_ids: Iterable[int]) -> dict[int, DeckAggregate]:
        """All-time and today totals for each requested deck."""
        return {deck_id: self.get_deck_aggregate(deck_id) for deck_id in dict.fromkeys(deck_ids)}

    def get_overall_aggregate(self, deck_ids: Iterable[int]) -> DeckAggregate:
        """All-time and today totals summed over the given decks."""
        return self._calc.combine(self.get_deck_aggregates(deck_ids).values())

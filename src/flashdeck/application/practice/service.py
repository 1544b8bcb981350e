"""
Practice Service: Application layer orchestrator for practice sessions.

Loads a deck's cards, selects the session's cards against the known-card
snapshot, and merges finished sessions into the stats store.
"""

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass

from flashdeck.application.card_selector import filter_cards, select_cards
from flashdeck.application.stats.metrics_calculator import (
    MetricsCalculator,
    SessionCompletionMetrics,
)
from flashdeck.application.stats.service import StatsService
from flashdeck.domain.constants import DEFAULT_RANDOM_ORDER, DEFAULT_SESSION_SIZE
from flashdeck.domain.models import Card, CardFilter, Deck, PracticeDirection
from flashdeck.domain.ports import CardSource
from flashdeck.domain.practice.session import Clock, PracticeSession, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PracticeSettings:
    """Defaults applied when a session is started without explicit options."""

    default_count: int = DEFAULT_SESSION_SIZE
    random_order: bool = DEFAULT_RANDOM_ORDER
    direction: PracticeDirection = PracticeDirection.FRONT_TO_BACK
    card_filter: CardFilter = CardFilter.UNKNOWN_ONLY

    def __post_init__(self) -> None:
        if self.default_count < 1:
            raise ValueError(f"default_count must be at least 1, got: {self.default_count}")


def _require_deck_id(deck_id: int) -> None:
    if deck_id <= 0:
        raise ValueError(f"Deck ID must be positive, got: {deck_id}")


class PracticeService:
    """
    Application service driving practice sessions end to end.

    Sessions it returns are owned by the caller; this service keeps no
    reference to them.
    """

    def __init__(
        self,
        card_source: CardSource,
        stats: StatsService,
        settings: PracticeSettings | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        calculator: MetricsCalculator | None = None,
    ):
        self._cards = card_source
        self._stats = stats
        self.settings = settings or PracticeSettings()
        self._clock = clock or utc_now
        self._rng = rng
        self._calc = calculator or MetricsCalculator()

    def list_decks(self) -> list[Deck]:
        return self._cards.list_decks()

    def load_deck(self, deck_id: int) -> Deck | None:
        _require_deck_id(deck_id)
        return self._cards.get_deck(deck_id)

    def list_cards(self, deck_id: int) -> list[Card]:
        _require_deck_id(deck_id)
        return self._cards.list_cards(deck_id)

    def get_not_known_cards(self, deck_id: int) -> list[Card]:
        _require_deck_id(deck_id)
        known = self._stats.get_known_card_ids(deck_id)
        return filter_cards(self._cards.list_cards(deck_id), known, CardFilter.UNKNOWN_ONLY)

    def resolve_default_count(self, eligible_cards: Sequence[Card]) -> int:
        """Configured session size, shrunk to the eligible cards but never below 1."""
        return max(1, min(len(eligible_cards), self.settings.default_count))

    def start_session(
        self,
        deck_id: int,
        count: int | None = None,
        random_order: bool | None = None,
        direction: PracticeDirection | None = None,
        card_filter: CardFilter | None = None,
    ) -> PracticeSession:
        """
        Select cards from a deck and start a session over them.

        Options left as None fall back to the service settings. The known-card
        set is read once here; later changes do not affect this session.
        """
        _require_deck_id(deck_id)
        card_filter = card_filter or self.settings.card_filter
        if random_order is None:
            random_order = self.settings.random_order
        direction = direction or self.settings.direction

        all_cards = self._cards.list_cards(deck_id)
        known = self._stats.get_known_card_ids(deck_id)
        if count is None:
            count = self.resolve_default_count(filter_cards(all_cards, known, card_filter))

        cards = select_cards(
            all_cards,
            known,
            card_filter=card_filter,
            count=count,
            random_order=random_order,
            rng=self._rng,
        )
        logger.info(
            f"Starting session: deck_id={deck_id}, cards={len(cards)}/{len(all_cards)}, "
            f"filter={card_filter.value}, direction={direction.value}"
        )
        return PracticeSession.create(deck_id, cards, direction=direction, clock=self._clock)

    def start_session_with_cards(
        self,
        deck_id: int,
        preloaded_cards: Sequence[Card],
        count: int | None = None,
        random_order: bool | None = None,
        direction: PracticeDirection | None = None,
    ) -> PracticeSession:
        """Start a session over cards the caller already loaded, without filtering."""
        _require_deck_id(deck_id)
        if random_order is None:
            random_order = self.settings.random_order
        cards = select_cards(
            preloaded_cards,
            (),
            card_filter=CardFilter.ALL,
            count=count,
            random_order=random_order,
            rng=self._rng,
        )
        return PracticeSession.create(
            deck_id, cards, direction=direction or self.settings.direction, clock=self._clock
        )

    def record_session(self, session: PracticeSession) -> bool:
        """
        Merge the session's counters and known-card delta into the stats store.

        Call once per session: recording twice counts the session twice.
        Returns False when nothing was recorded (no card was answered).
        """
        return self._stats.record_session(session.to_stats())

    def completion_metrics(self, session: PracticeSession) -> SessionCompletionMetrics:
        return self._calc.completion_metrics(session)

    def get_failed_cards(self, deck_id: int, failed_card_ids: Sequence[int]) -> list[Card]:
        """Cards answered hard or repeat that are still not known, in deck order."""
        if not failed_card_ids:
            return []
        wanted = set(failed_card_ids)
        return [card for card in self.get_not_known_cards(deck_id) if card.id in wanted]

    def start_repeat_session(
        self,
        deck_id: int,
        failed_cards: Sequence[Card],
        direction: PracticeDirection | None = None,
    ) -> PracticeSession:
        """Start a shuffled session over previously failed cards."""
        return self.start_session_with_cards(
            deck_id, failed_cards, random_order=True, direction=direction
        )

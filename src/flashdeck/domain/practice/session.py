"""
Practice session state machine.

A session is one finite pass over an ordered card sequence:

    AWAITING_QUESTION -> AWAITING_REVEAL -> REVEALED -> AWAITING_REVEAL -> ... -> COMPLETE

Every transition checks the current phase first and raises InvalidSessionState
without touching any field when the call is illegal. A session is driven by a
single caller; it does no locking of its own.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from flashdeck.domain.constants import MS_PER_SECOND
from flashdeck.domain.errors import InvalidSessionState, NoCurrentCard
from flashdeck.domain.models import Card, PracticeDirection
from flashdeck.domain.stats.models import SessionStats

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class SessionPhase(Enum):
    AWAITING_QUESTION = "awaiting_question"
    AWAITING_REVEAL = "awaiting_reveal"
    REVEALED = "revealed"
    COMPLETE = "complete"


class Outcome(str, Enum):
    """Answer a user gives after the card is revealed."""

    KNOW = "know"
    HARD = "hard"
    REPEAT = "repeat"


def _elapsed_ms(start: datetime, end: datetime) -> int:
    return max(0, int((end - start).total_seconds() * MS_PER_SECOND))


@dataclass(eq=False)
class PracticeSession:
    """
    Live state of one practice pass over a fixed card sequence.

    Create with PracticeSession.create(); mutate only through the transition
    methods. The session is transient and never persisted.
    """

    deck_id: int
    cards: tuple[Card, ...]
    direction: PracticeDirection
    started_at: datetime
    clock: Clock = field(default=utc_now, repr=False)
    phase: SessionPhase = SessionPhase.AWAITING_QUESTION
    position: int = 0

    # Outcome counters
    viewed: int = 0
    correct: int = 0
    repeat: int = 0
    hard: int = 0

    # Timing
    question_shown_at: datetime | None = None
    total_answer_delay_ms: int = 0

    # Deltas not yet merged into the stats store
    known_delta: set[int] = field(default_factory=set)
    failed_card_ids: list[int] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        deck_id: int,
        cards: Sequence[Card],
        direction: PracticeDirection = PracticeDirection.FRONT_TO_BACK,
        clock: Clock | None = None,
    ) -> "PracticeSession":
        """
        Start a session over ``cards`` in the given order.

        A session with no cards is complete from the start.
        """
        if deck_id <= 0:
            raise ValueError(f"Deck ID must be positive, got: {deck_id}")
        clock = clock or utc_now
        session = cls(
            deck_id=deck_id,
            cards=tuple(cards),
            direction=direction,
            started_at=clock(),
            clock=clock,
        )
        if not session.cards:
            session.phase = SessionPhase.COMPLETE
        return session

    # ---------- Queries ----------

    @property
    def is_complete(self) -> bool:
        return self.position == len(self.cards)

    @property
    def total_cards(self) -> int:
        return len(self.cards)

    def current_card(self) -> Card:
        if self.is_complete:
            raise NoCurrentCard(
                f"Session for deck {self.deck_id} has no current card "
                f"(position {self.position} of {len(self.cards)})"
            )
        return self.cards[self.position]

    def question_text(self) -> str:
        return self.current_card().question(self.direction)

    def answer_text(self) -> str:
        return self.current_card().answer(self.direction)

    def duration_ms(self) -> int:
        return _elapsed_ms(self.started_at, self.clock())

    # ---------- Transitions ----------

    def _require(self, operation: str, *allowed: SessionPhase) -> None:
        if self.phase not in allowed:
            raise InvalidSessionState(operation, self.phase)

    def start_question(self) -> None:
        """Show the current card's question and start its answer timer."""
        # Re-showing the question of a card that is already up restarts its timer.
        self._require(
            "start question", SessionPhase.AWAITING_QUESTION, SessionPhase.AWAITING_REVEAL
        )
        self.question_shown_at = self.clock()
        self.phase = SessionPhase.AWAITING_REVEAL

    def reveal(self) -> None:
        """Show the answer and add the time since the question appeared to the delay sum."""
        self._require("reveal", SessionPhase.AWAITING_REVEAL)
        if self.question_shown_at is not None:
            self.total_answer_delay_ms += _elapsed_ms(self.question_shown_at, self.clock())
        self.phase = SessionPhase.REVEALED

    def mark_know(self) -> None:
        self.mark(Outcome.KNOW)

    def mark_hard(self) -> None:
        self.mark(Outcome.HARD)

    def mark_repeat(self) -> None:
        self.mark(Outcome.REPEAT)

    def mark(self, outcome: Outcome) -> None:
        """Record the outcome for the revealed card and advance to the next one."""
        self._require(f"mark {outcome.value}", SessionPhase.REVEALED)
        card = self.cards[self.position]

        if outcome is Outcome.KNOW:
            self.correct += 1
            self.known_delta.add(card.id)
        else:
            if outcome is Outcome.HARD:
                self.hard += 1
            else:
                self.repeat += 1
            # Local correction only; the durable known set is untouched.
            self.known_delta.discard(card.id)
            if card.id not in self.failed_card_ids:
                self.failed_card_ids.append(card.id)

        self.viewed += 1
        self.position += 1

        if self.is_complete:
            self.phase = SessionPhase.COMPLETE
            self.question_shown_at = None
        else:
            self.phase = SessionPhase.AWAITING_REVEAL
            self.question_shown_at = self.clock()

    # ---------- Export ----------

    def to_stats(self) -> SessionStats:
        """Snapshot the counters as a SessionStats ready for the stats store."""
        return SessionStats(
            deck_id=self.deck_id,
            viewed=self.viewed,
            correct=self.correct,
            repeat=self.repeat,
            hard=self.hard,
            session_duration_ms=self.duration_ms(),
            total_answer_delay_ms=self.total_answer_delay_ms,
            known_card_ids_delta=frozenset(self.known_delta),
        )

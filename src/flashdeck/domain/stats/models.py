"""
Domain models for practice statistics.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class SessionStats:
    """
    Outcome of one finished practice session, ready to be merged into the stats store.

    Attributes:
        deck_id: Deck the session ran against.
        viewed: Cards answered (know + hard + repeat).
        correct: Cards answered "know".
        repeat: Cards answered "repeat".
        hard: Cards answered "hard".
        session_duration_ms: Wall time from session start to recording.
        total_answer_delay_ms: Sum of question-shown to reveal delays.
        known_card_ids_delta: Cards marked known during the session.
    """

    deck_id: int
    viewed: int
    correct: int = 0
    repeat: int = 0
    hard: int = 0
    session_duration_ms: int = 0
    total_answer_delay_ms: int = 0
    known_card_ids_delta: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.deck_id <= 0:
            raise ValueError(f"Deck ID must be positive, got: {self.deck_id}")
        for name in (
            "viewed",
            "correct",
            "repeat",
            "hard",
            "session_duration_ms",
            "total_answer_delay_ms",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} cannot be negative, got: {value}")
        # Accept any iterable of ids but always store an immutable set.
        if not isinstance(self.known_card_ids_delta, frozenset):
            object.__setattr__(
                self, "known_card_ids_delta", frozenset(self.known_card_ids_delta)
            )


@dataclass(frozen=True)
class DailyStatsRecord:
    """
    Rollup of all sessions run against one deck on one calendar date.

    Every field is a monotonically increasing sum.
    """

    date: date
    sessions: int
    viewed: int
    correct: int
    repeat: int
    hard: int
    total_duration_ms: int
    total_answer_delay_ms: int

    @property
    def avg_delay_ms(self) -> float:
        """Mean question-to-reveal delay per viewed card; 0.0 for a day with none."""
        return self.total_answer_delay_ms / self.viewed if self.viewed > 0 else 0.0

    def merged_with(self, stats: SessionStats) -> "DailyStatsRecord":
        """Return a new record with one more session folded in."""
        return DailyStatsRecord(
            date=self.date,
            sessions=self.sessions + 1,
            viewed=self.viewed + stats.viewed,
            correct=self.correct + stats.correct,
            repeat=self.repeat + stats.repeat,
            hard=self.hard + stats.hard,
            total_duration_ms=self.total_duration_ms + stats.session_duration_ms,
            total_answer_delay_ms=self.total_answer_delay_ms + stats.total_answer_delay_ms,
        )

    @classmethod
    def first(cls, day: date, stats: SessionStats) -> "DailyStatsRecord":
        return cls(
            date=day,
            sessions=1,
            viewed=stats.viewed,
            correct=stats.correct,
            repeat=stats.repeat,
            hard=stats.hard,
            total_duration_ms=stats.session_duration_ms,
            total_answer_delay_ms=stats.total_answer_delay_ms,
        )


@dataclass(frozen=True)
class DeckAggregate:
    """All-time and today totals for one deck."""

    sessions_all: int = 0
    viewed_all: int = 0
    correct_all: int = 0
    repeat_all: int = 0
    hard_all: int = 0
    sessions_today: int = 0
    viewed_today: int = 0
    correct_today: int = 0
    repeat_today: int = 0
    hard_today: int = 0

"""
Metrics calculator for deriving summaries from raw practice stats.

This is a pure computation module with no I/O.
"""

from collections.abc import Iterable
from dataclasses import dataclass, fields
from datetime import date

from flashdeck.domain.constants import MS_PER_SECOND, SECONDS_PER_MINUTE
from flashdeck.domain.practice.session import PracticeSession
from flashdeck.domain.stats.models import DailyStatsRecord, DeckAggregate


@dataclass(frozen=True)
class SessionCompletionMetrics:
    """
    Summary shown when a session ends.
    """

    total_cards: int
    session_minutes: int  # At least 1
    avg_seconds: int  # Average answer delay per viewed card, at least 1


class MetricsCalculator:
    """
    Computes derived metrics from daily records and finished sessions.

    Stateless and side-effect free.
    """

    def aggregate(self, records: Iterable[DailyStatsRecord], today: date) -> DeckAggregate:
        """
        Sum daily records into all-time and today totals.
        """
        totals = dict.fromkeys(
            ("sessions", "viewed", "correct", "repeat", "hard"), 0
        )
        today_totals = dict(totals)

        for record in records:
            for key in totals:
                value = getattr(record, key)
                totals[key] += value
                if record.date == today:
                    today_totals[key] += value

        return DeckAggregate(
            sessions_all=totals["sessions"],
            viewed_all=totals["viewed"],
            correct_all=totals["correct"],
            repeat_all=totals["repeat"],
            hard_all=totals["hard"],
            sessions_today=today_totals["sessions"],
            viewed_today=today_totals["viewed"],
            correct_today=today_totals["correct"],
            repeat_today=today_totals["repeat"],
            hard_today=today_totals["hard"],
        )

    def combine(self, aggregates: Iterable[DeckAggregate]) -> DeckAggregate:
        """
        Sum per-deck aggregates into one overall total, field by field.
        """
        totals = dict.fromkeys((f.name for f in fields(DeckAggregate)), 0)
        for aggregate in aggregates:
            for key in totals:
                totals[key] += getattr(aggregate, key)
        return DeckAggregate(**totals)

    def completion_metrics(self, session: PracticeSession) -> SessionCompletionMetrics:
        """
        Compute the end-of-session summary.

        Both the duration in minutes and the average answer delay are floored at 1
        so a very quick session never reports zero.
        """
        duration_seconds = session.duration_ms() // MS_PER_SECOND
        minutes = max(1, duration_seconds // SECONDS_PER_MINUTE)

        denom = max(session.viewed, 1)
        avg_seconds = max(1, round(session.total_answer_delay_ms / denom / MS_PER_SECOND))

        return SessionCompletionMetrics(
            total_cards=session.total_cards,
            session_minutes=minutes,
            avg_seconds=avg_seconds,
        )

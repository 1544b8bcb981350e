"""Read-only progress snapshot of a live practice session."""

from dataclasses import dataclass

from flashdeck.domain.practice.session import PracticeSession


@dataclass(frozen=True)
class Progress:
    total_viewed: int
    total_cards: int
    remaining: int
    correct: int
    repeat: int
    hard: int
    current: int  # 1-based number of the card on screen, 0 for an empty session
    percent: int
    complete: bool


def project_progress(session: PracticeSession) -> Progress:
    """Project session counters into a Progress. Pure; valid in every phase."""
    total = session.total_cards
    current = min(max(session.position + 1, 1), total) if total else 0
    percent = round(current * 100 / total) if total else 0
    return Progress(
        total_viewed=session.viewed,
        total_cards=total,
        remaining=total - session.position,
        correct=session.correct,
        repeat=session.repeat,
        hard=session.hard,
        current=current,
        percent=percent,
        complete=session.is_complete,
    )

from datetime import date

import pytest

from flashdeck.domain.errors import DeckNotFoundError, InvalidSessionState
from flashdeck.domain.models import Card, PracticeDirection
from flashdeck.domain.practice.session import SessionPhase
from flashdeck.domain.stats.models import DailyStatsRecord, SessionStats


def test_session_stats_validation():
    with pytest.raises(ValueError, match="Deck ID"):
        SessionStats(deck_id=0, viewed=1)
    with pytest.raises(ValueError, match="hard"):
        SessionStats(deck_id=1, viewed=1, hard=-1)


def test_session_stats_freezes_known_delta():
    stats = SessionStats(deck_id=1, viewed=2, known_card_ids_delta=[3, 3, 4])
    assert stats.known_card_ids_delta == frozenset({3, 4})


def test_daily_record_merge_sums_everything():
    day = date(2024, 5, 1)
    first = DailyStatsRecord.first(
        day, SessionStats(1, viewed=3, correct=2, hard=1, session_duration_ms=60_000)
    )
    merged = first.merged_with(
        SessionStats(1, viewed=2, repeat=2, session_duration_ms=30_000, total_answer_delay_ms=900)
    )

    assert merged == DailyStatsRecord(
        date=day,
        sessions=2,
        viewed=5,
        correct=2,
        repeat=2,
        hard=1,
        total_duration_ms=90_000,
        total_answer_delay_ms=900,
    )
    assert first.sessions == 1


def test_card_sides_follow_direction():
    card = Card(id=1, deck_id=1, front="perro", back="dog")
    assert card.question(PracticeDirection.FRONT_TO_BACK) == "perro"
    assert card.answer(PracticeDirection.BACK_TO_FRONT) == "perro"


def test_error_messages():
    err = InvalidSessionState("reveal", SessionPhase.REVEALED)
    assert str(err) == "Cannot reveal while session is REVEALED"
    # KeyError subclasses normally quote their message
    assert str(DeckNotFoundError("Deck not found: 3")) == "Deck not found: 3"


def test_daily_record_average_delay():
    day = date(2024, 5, 1)
    record = DailyStatsRecord.first(day, SessionStats(1, viewed=4, total_answer_delay_ms=5000))
    assert record.avg_delay_ms == 1250.0
    assert DailyStatsRecord.first(day, SessionStats(1, viewed=0)).avg_delay_ms == 0.0

import itertools

import pytest

from flashdeck.domain.errors import InvalidSessionState, NoCurrentCard
from flashdeck.domain.models import PracticeDirection
from flashdeck.domain.practice.session import Outcome, PracticeSession, SessionPhase


@pytest.fixture
def session(cards, clock):
    return PracticeSession.create(1, cards[:2], clock=clock)


def _answer(session, outcome):
    if session.phase is SessionPhase.AWAITING_QUESTION:
        session.start_question()
    session.reveal()
    session.mark(outcome)


# --- Creation ---


def test_create_starts_awaiting_question(session, clock):
    assert session.phase is SessionPhase.AWAITING_QUESTION
    assert session.position == 0
    assert session.started_at == clock.now
    assert session.total_cards == 2


def test_create_empty_session_is_complete(clock):
    session = PracticeSession.create(1, [], clock=clock)
    assert session.is_complete
    assert session.phase is SessionPhase.COMPLETE
    with pytest.raises(NoCurrentCard):
        session.current_card()
    with pytest.raises(InvalidSessionState):
        session.start_question()


def test_create_rejects_non_positive_deck(cards):
    with pytest.raises(ValueError):
        PracticeSession.create(0, cards)


def test_create_copies_card_sequence(cards, clock):
    source = list(cards)
    session = PracticeSession.create(1, source, clock=clock)
    source.clear()
    assert session.total_cards == 4


# --- Happy path ---


def test_know_then_hard_walkthrough(session, cards):
    session.start_question()
    assert session.current_card() == cards[0]
    session.reveal()
    session.mark_know()

    assert session.current_card() == cards[1]
    session.reveal()
    session.mark_hard()

    assert session.is_complete
    assert session.phase is SessionPhase.COMPLETE
    assert (session.viewed, session.correct, session.hard, session.repeat) == (2, 1, 1, 0)
    assert session.known_delta == {11}
    assert session.failed_card_ids == [12]


def test_mark_advances_straight_to_next_question(session, clock):
    session.start_question()
    session.reveal()
    clock.advance(5)
    session.mark_repeat()

    assert session.phase is SessionPhase.AWAITING_REVEAL
    assert session.question_shown_at == clock.now


@pytest.mark.parametrize(
    "outcomes", list(itertools.product(list(Outcome), repeat=3))
)
def test_completes_after_exactly_len_cards_marks(cards, clock, outcomes):
    session = PracticeSession.create(1, cards[:3], clock=clock)
    for i, outcome in enumerate(outcomes):
        assert not session.is_complete
        _answer(session, outcome)
        assert session.viewed == i + 1
    assert session.is_complete
    assert session.correct + session.hard + session.repeat == 3
    assert session.correct == outcomes.count(Outcome.KNOW)


# --- Illegal transitions ---


def test_reveal_before_question_is_rejected(session):
    with pytest.raises(InvalidSessionState) as exc:
        session.reveal()
    assert exc.value.phase is SessionPhase.AWAITING_QUESTION
    assert session.phase is SessionPhase.AWAITING_QUESTION


def test_mark_before_reveal_leaves_state_untouched(session):
    session.start_question()
    with pytest.raises(InvalidSessionState):
        session.mark_know()
    assert session.viewed == 0
    assert session.position == 0
    assert session.phase is SessionPhase.AWAITING_REVEAL


def test_double_reveal_is_rejected(session):
    session.start_question()
    session.reveal()
    with pytest.raises(InvalidSessionState):
        session.reveal()


def test_start_question_after_reveal_is_rejected(session):
    session.start_question()
    session.reveal()
    with pytest.raises(InvalidSessionState):
        session.start_question()


def test_mark_after_complete_is_rejected(session):
    _answer(session, Outcome.KNOW)
    _answer(session, Outcome.KNOW)
    with pytest.raises(InvalidSessionState):
        session.mark_know()
    assert session.viewed == 2


def test_start_question_again_restarts_timer(session, clock):
    session.start_question()
    clock.advance(30)
    session.start_question()
    clock.advance(2)
    session.reveal()
    assert session.total_answer_delay_ms == 2000


# --- Timing ---


def test_answer_delay_accumulates_per_card(session, clock):
    session.start_question()
    clock.advance(3)
    session.reveal()
    clock.advance(10)  # Time spent looking at the answer is not counted
    session.mark_know()
    clock.advance(1.5)
    session.reveal()
    assert session.total_answer_delay_ms == 4500


def test_backwards_clock_is_clamped(session, clock):
    session.start_question()
    clock.advance(-5)
    session.reveal()
    assert session.total_answer_delay_ms == 0
    assert session.duration_ms() == 0


def test_duration_measured_from_start(session, clock):
    clock.advance(90)
    assert session.duration_ms() == 90_000


# --- Known delta ---


def test_hard_after_know_removes_card_from_delta(cards, clock):
    session = PracticeSession.create(1, [cards[0], cards[1], cards[0]], clock=clock)
    _answer(session, Outcome.KNOW)
    _answer(session, Outcome.KNOW)
    _answer(session, Outcome.HARD)
    assert session.known_delta == {12}
    assert session.failed_card_ids == [11]


def test_failed_ids_are_unique(cards, clock):
    session = PracticeSession.create(1, [cards[0], cards[0]], clock=clock)
    _answer(session, Outcome.REPEAT)
    _answer(session, Outcome.HARD)
    assert session.failed_card_ids == [11]


# --- Direction ---


def test_back_to_front_swaps_question_and_answer(cards, clock):
    session = PracticeSession.create(
        1, cards[:1], direction=PracticeDirection.BACK_TO_FRONT, clock=clock
    )
    assert session.question_text() == "hello"
    assert session.answer_text() == "hola"


# --- Export ---


def test_to_stats_snapshot(session, clock):
    session.start_question()
    clock.advance(2)
    session.reveal()
    session.mark_know()
    clock.advance(3)
    session.reveal()
    session.mark_repeat()
    clock.advance(1)

    stats = session.to_stats()
    assert stats.deck_id == 1
    assert stats.viewed == 2
    assert stats.correct == 1
    assert stats.repeat == 1
    assert stats.hard == 0
    assert stats.total_answer_delay_ms == 5000
    assert stats.session_duration_ms == 6000
    assert stats.known_card_ids_delta == frozenset({11})

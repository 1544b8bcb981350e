from flashdeck.application.practice.progress import project_progress
from flashdeck.domain.practice.session import PracticeSession


def test_progress_of_fresh_session(cards, clock):
    progress = project_progress(PracticeSession.create(1, cards, clock=clock))

    assert progress.total_viewed == 0
    assert progress.total_cards == 4
    assert progress.remaining == 4
    assert progress.current == 1
    assert progress.percent == 25
    assert not progress.complete


def test_progress_tracks_marks(cards, clock):
    session = PracticeSession.create(1, cards, clock=clock)
    session.start_question()
    session.reveal()
    session.mark_know()
    session.reveal()
    session.mark_repeat()

    progress = project_progress(session)
    assert progress.total_viewed == 2
    assert progress.correct == 1
    assert progress.repeat == 1
    assert progress.hard == 0
    assert progress.remaining == 2
    assert progress.current == 3
    assert progress.percent == 75


def test_progress_of_completed_session_caps_current(cards, clock):
    session = PracticeSession.create(1, cards[:1], clock=clock)
    session.start_question()
    session.reveal()
    session.mark_hard()

    progress = project_progress(session)
    assert progress.complete
    assert progress.current == 1
    assert progress.percent == 100
    assert progress.remaining == 0


def test_progress_of_empty_session(clock):
    progress = project_progress(PracticeSession.create(1, [], clock=clock))
    assert progress.current == 0
    assert progress.percent == 0
    assert progress.complete


def test_progress_is_read_only(cards, clock):
    session = PracticeSession.create(1, cards, clock=clock)
    session.start_question()
    project_progress(session)
    project_progress(session)
    assert session.viewed == 0
    assert session.position == 0

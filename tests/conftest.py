from datetime import UTC, datetime, timedelta

import pytest

from flashdeck.domain.models import Card, Deck
from flashdeck.infrastructure.adapters.cards import InMemoryCardSource


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def deck():
    return Deck(id=1, owner_id=7, title="Spanish basics", description="Greetings")


@pytest.fixture
def cards():
    return [
        Card(id=11, deck_id=1, front="hola", back="hello", example="¡Hola, amigo!"),
        Card(id=12, deck_id=1, front="adiós", back="goodbye"),
        Card(id=13, deck_id=1, front="gracias", back="thank you"),
        Card(id=14, deck_id=1, front="por favor", back="please"),
    ]


@pytest.fixture
def card_source(deck, cards):
    return InMemoryCardSource([deck], cards)


@pytest.fixture
def cards_file(tmp_path):
    """YAML file with two decks, the second one empty."""
    path = tmp_path / "cards.yaml"
    path.write_text(
        """
decks:
  - id: 1
    owner_id: 7
    title: Spanish basics
    cards:
      - {id: 11, front: hola, back: hello, example: "¡Hola, amigo!"}
      - {id: 12, front: adiós, back: goodbye}
  - id: 2
    owner_id: 7
    title: Empty deck
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    return home

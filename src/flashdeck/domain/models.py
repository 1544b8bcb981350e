"""
Domain models for decks and cards.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from enum import Enum


class PracticeDirection(str, Enum):
    """Which side of a card is shown as the question."""

    FRONT_TO_BACK = "front_to_back"
    BACK_TO_FRONT = "back_to_front"


class CardFilter(str, Enum):
    """Which cards of a deck are eligible for a session, by known status."""

    ALL = "all"
    KNOWN_ONLY = "known_only"
    UNKNOWN_ONLY = "unknown_only"


@dataclass(frozen=True)
class Deck:
    """
    A named collection of flashcards.

    Attributes:
        id: Deck identifier (positive).
        owner_id: Identifier of the user owning the deck.
        title: Display title.
        description: Free-form description.
    """

    id: int
    owner_id: int
    title: str
    description: str = ""


@dataclass(frozen=True)
class Card:
    """
    A front/back pair belonging to a deck.

    Attributes:
        id: Card identifier (positive).
        deck_id: Owning deck.
        front: Front text.
        back: Back text.
        example: Optional usage example shown with the answer.
    """

    id: int
    deck_id: int
    front: str
    back: str
    example: str | None = None

    def question(self, direction: PracticeDirection) -> str:
        if direction is PracticeDirection.BACK_TO_FRONT:
            return self.back
        return self.front

    def answer(self, direction: PracticeDirection) -> str:
        if direction is PracticeDirection.BACK_TO_FRONT:
            return self.front
        return self.back

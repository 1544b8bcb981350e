"""
Ports (interfaces) for card retrieval.

Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import Card, Deck


class CardSource(ABC):
    """
    Port for reading decks and their cards.

    Implementations:
        - InMemoryCardSource: Plain dictionaries, used by tests and embedding code.
        - YamlCardSource: Decks declared in a YAML file.
    """

    @abstractmethod
    def list_decks(self) -> list[Deck]:
        """Return all decks ordered by id."""
        pass

    @abstractmethod
    def get_deck(self, deck_id: int) -> Deck | None:
        """Return one deck, or None if it does not exist."""
        pass

    @abstractmethod
    def list_cards(self, deck_id: int) -> list[Card]:
        """
        Return the cards of a deck in deck order.

        Returns an empty list for an unknown deck.
        """
        pass

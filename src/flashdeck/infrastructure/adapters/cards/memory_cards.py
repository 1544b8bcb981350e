"""In-memory CardSource over plain lists of decks and cards."""

from collections.abc import Iterable

from flashdeck.domain.models import Card, Deck
from flashdeck.domain.ports import CardSource


class InMemoryCardSource(CardSource):
    def __init__(self, decks: Iterable[Deck] = (), cards: Iterable[Card] = ()):
        self._decks: dict[int, Deck] = {deck.id: deck for deck in decks}
        self._cards: dict[int, list[Card]] = {}
        for card in cards:
            self._cards.setdefault(card.deck_id, []).append(card)

    def list_decks(self) -> list[Deck]:
        return sorted(self._decks.values(), key=lambda d: d.id)

    def get_deck(self, deck_id: int) -> Deck | None:
        return self._decks.get(deck_id)

    def list_cards(self, deck_id: int) -> list[Card]:
        return list(self._cards.get(deck_id, []))

"""
YAML Card Source: decks and cards declared in a single YAML file.

Expected layout:

    decks:
      - id: 1
        owner_id: 1
        title: Spanish basics
        description: Greetings and numbers
        cards:
          - id: 10
            front: hola
            back: hello
            example: ¡Hola, amigo!

The file is read once, at construction.
"""

import logging
from pathlib import Path
from typing import Any

import yaml  # type: ignore

from flashdeck.domain.errors import CardSourceError
from flashdeck.domain.models import Card, Deck

from .memory_cards import InMemoryCardSource

logger = logging.getLogger(__name__)


def _require_int(raw: dict[str, Any], key: str, where: str) -> int:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise CardSourceError(f"{where}: '{key}' must be a positive integer, got {value!r}")
    return value


def _require_str(raw: dict[str, Any], key: str, where: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise CardSourceError(f"{where}: '{key}' must be a non-empty string")
    return value


def parse_decks(data: Any, origin: str = "<yaml>") -> tuple[list[Deck], list[Card]]:
    """Validate parsed YAML data and build domain objects."""
    if not isinstance(data, dict) or not isinstance(data.get("decks"), list):
        raise CardSourceError(f"{origin}: expected a top-level 'decks' list")

    decks: list[Deck] = []
    cards: list[Card] = []
    seen_decks: set[int] = set()
    seen_cards: set[int] = set()

    for i, raw_deck in enumerate(data["decks"]):
        where = f"{origin}: decks[{i}]"
        if not isinstance(raw_deck, dict):
            raise CardSourceError(f"{where}: expected a mapping")

        deck_id = _require_int(raw_deck, "id", where)
        if deck_id in seen_decks:
            raise CardSourceError(f"{where}: duplicate deck id {deck_id}")
        seen_decks.add(deck_id)

        decks.append(
            Deck(
                id=deck_id,
                owner_id=_require_int(raw_deck, "owner_id", where),
                title=_require_str(raw_deck, "title", where),
                description=str(raw_deck.get("description") or ""),
            )
        )

        raw_cards = raw_deck.get("cards") or []
        if not isinstance(raw_cards, list):
            raise CardSourceError(f"{where}: 'cards' must be a list")

        for j, raw_card in enumerate(raw_cards):
            card_where = f"{where}.cards[{j}]"
            if not isinstance(raw_card, dict):
                raise CardSourceError(f"{card_where}: expected a mapping")
            card_id = _require_int(raw_card, "id", card_where)
            if card_id in seen_cards:
                raise CardSourceError(f"{card_where}: duplicate card id {card_id}")
            seen_cards.add(card_id)
            example = raw_card.get("example")
            cards.append(
                Card(
                    id=card_id,
                    deck_id=deck_id,
                    front=_require_str(raw_card, "front", card_where),
                    back=_require_str(raw_card, "back", card_where),
                    example=str(example) if example else None,
                )
            )

    return decks, cards


class YamlCardSource(InMemoryCardSource):
    """CardSource loaded from a YAML file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise CardSourceError(f"Cannot read cards file {self.path}: {e}") from e
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise CardSourceError(f"Invalid YAML in {self.path}: {e}") from e

        decks, cards = parse_decks(data, origin=str(self.path))
        super().__init__(decks, cards)
        logger.debug(f"Loaded {len(decks)} decks and {len(cards)} cards from {self.path}")

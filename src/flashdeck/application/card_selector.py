"""
Card selector for practice sessions.

Builds the ordered card sequence of one session by:
1. Filtering the deck's cards against a snapshot of its known-card set
2. Optionally shuffling the filtered cards
3. Truncating to the requested count
"""

import logging
import random
from collections.abc import Collection, Sequence

from flashdeck.domain.models import Card, CardFilter

logger = logging.getLogger(__name__)


def filter_cards(
    all_cards: Sequence[Card],
    known_ids: Collection[int],
    card_filter: CardFilter,
) -> list[Card]:
    """Return the cards matching ``card_filter``, keeping deck order."""
    if card_filter is CardFilter.KNOWN_ONLY:
        return [card for card in all_cards if card.id in known_ids]
    if card_filter is CardFilter.UNKNOWN_ONLY:
        return [card for card in all_cards if card.id not in known_ids]
    return list(all_cards)


def select_cards(
    all_cards: Sequence[Card],
    known_ids: Collection[int],
    *,
    card_filter: CardFilter = CardFilter.ALL,
    count: int | None = None,
    random_order: bool = False,
    rng: random.Random | None = None,
) -> list[Card]:
    """
    Select the ordered cards for one practice session.

    Args:
        all_cards: Every card of the deck, in deck order.
        known_ids: Snapshot of the deck's known-card ids.
        card_filter: Which cards are eligible by known status.
        count: Maximum number of cards; None selects every eligible card.
        random_order: Shuffle eligible cards before truncating.
        rng: Optional random source, for reproducible shuffles.

    Returns:
        A new list; ``all_cards`` is never mutated. May be empty.
    """
    if count is not None and count < 0:
        raise ValueError(f"count cannot be negative, got: {count}")

    selected = filter_cards(all_cards, known_ids, card_filter)

    if random_order and len(selected) > 1:
        (rng or random).shuffle(selected)

    if count is not None and count < len(selected):
        selected = selected[:count]

    logger.debug(
        f"Selected {len(selected)}/{len(all_cards)} cards "
        f"(filter={card_filter.value}, count={count}, random={random_order})"
    )
    return selected

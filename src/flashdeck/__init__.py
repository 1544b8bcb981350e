"""flashdeck: flashcard practice sessions with per-deck progress statistics."""

from flashdeck.consts import VERSION

__version__ = VERSION

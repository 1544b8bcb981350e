"""Error hierarchy shared by every flashdeck layer."""


class FlashdeckError(Exception):
    """Base class for all flashdeck errors."""


class InvalidSessionState(FlashdeckError):
    """A session transition was invoked from a phase that does not permit it."""

    def __init__(self, operation: str, phase: object):
        self.operation = operation
        self.phase = phase
        phase_name = getattr(phase, "name", str(phase))
        super().__init__(f"Cannot {operation} while session is {phase_name}")


class NoCurrentCard(FlashdeckError):
    """The session is complete (or empty) and has no card to show."""


class PersistenceError(FlashdeckError):
    """A read or write against durable stats storage failed."""


class CardSourceError(FlashdeckError):
    """Card data could not be loaded from its source."""


class DeckNotFoundError(FlashdeckError, KeyError):
    """The requested deck does not exist in the card source."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class SessionNotFoundError(FlashdeckError, KeyError):
    """No live practice session exists for the given id."""

    def __str__(self) -> str:
        return Exception.__str__(self)

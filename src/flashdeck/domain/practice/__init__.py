# Domain Practice Package
from .session import Outcome, PracticeSession, SessionPhase

__all__ = ["Outcome", "PracticeSession", "SessionPhase"]

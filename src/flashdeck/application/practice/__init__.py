# Application Practice Package
from .progress import Progress, project_progress
from .registry import SessionRegistry
from .service import PracticeService, PracticeSettings

__all__ = [
    "PracticeService",
    "PracticeSettings",
    "Progress",
    "SessionRegistry",
    "project_progress",
]

# Domain Stats Package
from .models import DailyStatsRecord, DeckAggregate, SessionStats
from .ports import StatsRepository

__all__ = ["DailyStatsRecord", "DeckAggregate", "SessionStats", "StatsRepository"]

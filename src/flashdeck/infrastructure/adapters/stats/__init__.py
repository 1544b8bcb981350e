# Infrastructure Stats Adapters Package
from .memory_stats import InMemoryStatsRepository
from .sqlite_stats import SqliteStatsRepository

__all__ = ["InMemoryStatsRepository", "SqliteStatsRepository"]

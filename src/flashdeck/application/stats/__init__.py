# Application Stats Package
from .metrics_calculator import MetricsCalculator, SessionCompletionMetrics
from .service import StatsService

__all__ = ["MetricsCalculator", "SessionCompletionMetrics", "StatsService"]

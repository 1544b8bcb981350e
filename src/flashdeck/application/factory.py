"""
Backend Factory
Centralizes the logic for selecting stats and card adapters and wiring services.
"""

import logging
from pathlib import Path

from flashdeck.application.config import AppConfig
from flashdeck.application.practice.service import PracticeService
from flashdeck.application.stats.service import StatsService
from flashdeck.consts import AUDIT_LOG_FILE, AUDIT_LOGGER_NAME
from flashdeck.domain.ports import CardSource
from flashdeck.domain.stats.ports import StatsRepository
from flashdeck.infrastructure.adapters.cards import InMemoryCardSource, YamlCardSource
from flashdeck.infrastructure.adapters.stats import (
    InMemoryStatsRepository,
    SqliteStatsRepository,
)

logger = logging.getLogger(__name__)


def get_stats_repository(config: AppConfig) -> StatsRepository:
    """
    Returns the StatsRepository implementation selected by config.backend.
    """
    if config.backend == "sqlite":
        logger.debug(f"Stats backend: sqlite ({config.db_path})")
        return SqliteStatsRepository(config.db_path)

    logger.debug("Stats backend: memory")
    return InMemoryStatsRepository()


def get_card_source(config: AppConfig) -> CardSource:
    """
    Returns the CardSource for config.cards_file, or an empty source when none is set.
    """
    if config.cards_file is None:
        logger.warning("No cards file configured; no decks are available")
        return InMemoryCardSource()
    return YamlCardSource(config.cards_file)


def configure_audit_log(log_dir: Path) -> Path | None:
    """
    Also write the audit logger to <log_dir>/audit.log.

    Returns the log file path, or None if the directory cannot be created.
    """
    path = log_dir / AUDIT_LOG_FILE
    audit = logging.getLogger(AUDIT_LOGGER_NAME)
    for handler in list(audit.handlers):
        if isinstance(handler, logging.FileHandler):
            if Path(handler.baseFilename) == path:
                return path
            audit.removeHandler(handler)
            handler.close()

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Audit log disabled, cannot create {log_dir}: {e}")
        return None

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    audit.addHandler(handler)
    return path


def build_services(config: AppConfig) -> tuple[PracticeService, StatsService]:
    """Wire the card source, stats repository and services for one process."""
    configure_audit_log(config.log_dir)
    cards = get_card_source(config)
    stats = StatsService(get_stats_repository(config), card_source=cards)
    practice = PracticeService(cards, stats, settings=config.practice_settings())
    return practice, stats

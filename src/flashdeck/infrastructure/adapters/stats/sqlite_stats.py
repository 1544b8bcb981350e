"""
SQLite Stats Repository: Infrastructure adapter for durable stats.

Implements StatsRepository on a SQLite file. Every public call opens its own
connection and runs in one IMMEDIATE transaction, so concurrent callers (threads
or processes) are serialized by SQLite's write lock and no increment is lost.
Any sqlite3 failure surfaces as PersistenceError.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, date, datetime
from pathlib import Path

from flashdeck.domain.constants import SQLITE_BUSY_TIMEOUT, SQLITE_SCHEMA_VERSION
from flashdeck.domain.errors import PersistenceError
from flashdeck.domain.stats.models import DailyStatsRecord, SessionStats
from flashdeck.domain.stats.ports import StatsRepository

logger = logging.getLogger(__name__)

UPSERT_DAILY_STATS = """
    INSERT INTO deck_daily_stats (
        deck_id, date, sessions, viewed, correct, repeats, hard,
        total_duration_ms, total_answer_delay_ms
    )
    VALUES (?, ?, 1, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(deck_id, date) DO UPDATE SET
        sessions = sessions + 1,
        viewed = viewed + excluded.viewed,
        correct = correct + excluded.correct,
        repeats = repeats + excluded.repeats,
        hard = hard + excluded.hard,
        total_duration_ms = total_duration_ms + excluded.total_duration_ms,
        total_answer_delay_ms = total_answer_delay_ms + excluded.total_answer_delay_ms
"""

INSERT_KNOWN_CARD = "INSERT OR IGNORE INTO known_cards (deck_id, card_id) VALUES (?, ?)"
DELETE_KNOWN_CARD = "DELETE FROM known_cards WHERE deck_id = ? AND card_id = ?"


class SqliteStatsRepository(StatsRepository):
    """
    Persists daily records and known-card sets in a SQLite database file.
    """

    def __init__(self, db_path: Path | str, timeout: float = SQLITE_BUSY_TIMEOUT):
        """Initialize database file and schema."""
        if str(db_path) == ":memory:":
            raise ValueError("SqliteStatsRepository needs a database file, not ':memory:'")
        self.db_path = Path(db_path)
        self.timeout = timeout
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create stats directory for {self.db_path}: {e}") from e
        self._apply_migrations()

    # ---------- Connection handling ----------

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn: sqlite3.Connection | None = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            logger.error(f"Stats storage failure on {self.db_path}: {e}")
            raise PersistenceError(f"Stats storage failure: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        with self._transaction() as conn:
            current = int(conn.execute("PRAGMA user_version").fetchone()[0])
            if current > SQLITE_SCHEMA_VERSION:
                raise PersistenceError(
                    f"Database schema version {current} is newer than supported "
                    f"{SQLITE_SCHEMA_VERSION}."
                )
            for version in range(current + 1, SQLITE_SCHEMA_VERSION + 1):
                if version == 1:
                    self._migrate_to_v1(conn)
                conn.execute(f"PRAGMA user_version = {version}")
                conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self, conn: sqlite3.Connection) -> None:
        """Create daily rollup and known-card tables."""
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INTEGER PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
            """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS deck_daily_stats (
                deck_id INTEGER NOT NULL,
                date TEXT NOT NULL,
                sessions INTEGER NOT NULL,
                viewed INTEGER NOT NULL,
                correct INTEGER NOT NULL,
                repeats INTEGER NOT NULL,
                hard INTEGER NOT NULL,
                total_duration_ms INTEGER NOT NULL,
                total_answer_delay_ms INTEGER NOT NULL,
                PRIMARY KEY (deck_id, date)
            )
            """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS known_cards (
                deck_id INTEGER NOT NULL,
                card_id INTEGER NOT NULL,
                PRIMARY KEY (deck_id, card_id)
            )
            """)

    # ---------- StatsRepository ----------

    def append_session(self, stats: SessionStats, day: date) -> None:
        if stats.viewed <= 0:
            return
        with self._transaction() as conn:
            conn.execute(
                UPSERT_DAILY_STATS,
                (
                    stats.deck_id,
                    day.isoformat(),
                    stats.viewed,
                    stats.correct,
                    stats.repeat,
                    stats.hard,
                    stats.session_duration_ms,
                    stats.total_answer_delay_ms,
                ),
            )
            conn.executemany(
                INSERT_KNOWN_CARD,
                [(stats.deck_id, card_id) for card_id in sorted(stats.known_card_ids_delta)],
            )

    def get_daily_stats(self, deck_id: int) -> list[DailyStatsRecord]:
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT date, sessions, viewed, correct, repeats, hard,
                       total_duration_ms, total_answer_delay_ms
                FROM deck_daily_stats
                WHERE deck_id = ?
                ORDER BY date ASC
                """,
                (deck_id,),
            ).fetchall()
        return [
            DailyStatsRecord(
                date=date.fromisoformat(str(row["date"])),
                sessions=int(row["sessions"]),
                viewed=int(row["viewed"]),
                correct=int(row["correct"]),
                repeat=int(row["repeats"]),
                hard=int(row["hard"]),
                total_duration_ms=int(row["total_duration_ms"]),
                total_answer_delay_ms=int(row["total_answer_delay_ms"]),
            )
            for row in rows
        ]

    def get_known_card_ids(self, deck_id: int) -> set[int]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT card_id FROM known_cards WHERE deck_id = ?", (deck_id,)
            ).fetchall()
        return {int(row["card_id"]) for row in rows}

    def is_card_known(self, deck_id: int, card_id: int) -> bool:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT 1 FROM known_cards WHERE deck_id = ? AND card_id = ?",
                (deck_id, card_id),
            ).fetchone()
        return row is not None

    def set_card_known(self, deck_id: int, card_id: int, known: bool) -> None:
        with self._transaction() as conn:
            conn.execute(INSERT_KNOWN_CARD if known else DELETE_KNOWN_CARD, (deck_id, card_id))

    def toggle_card_known(self, deck_id: int, card_id: int) -> bool:
        with self._transaction() as conn:
            deleted = conn.execute(DELETE_KNOWN_CARD, (deck_id, card_id)).rowcount
            if deleted:
                return False
            conn.execute(INSERT_KNOWN_CARD, (deck_id, card_id))
            return True

    def reset_deck_progress(self, deck_id: int) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM known_cards WHERE deck_id = ?", (deck_id,))

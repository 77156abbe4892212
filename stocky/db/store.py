"""SQLite snapshot store for Stocky."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from stocky.models import Achievements, LevelKey, Portfolio, ProgressRecord

logger = logging.getLogger(__name__)

PORTFOLIO_KEY_PREFIX = "portfolio_level_"
PROGRESS_KEY = "progress"
ACHIEVEMENTS_KEY = "achievements"
MARKET_KEY = "market"
ACTIVE_LEDGER_KEY = "active_ledger"


def portfolio_key(level: LevelKey) -> str:
    """Storage key of the ledger snapshot for a level (or 'custom')."""
    return f"{PORTFOLIO_KEY_PREFIX}{level}"


class DataStore:
    """SQLite-based key-value store holding JSON snapshots."""

    REQUIRED_TABLES = [
        "snapshots",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS snapshots (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Key-value ====================

    def load(self, key: str) -> Optional[dict]:
        """Load a snapshot.

        Args:
            key: Snapshot key.

        Returns:
            The decoded snapshot, or None if the key is absent or unreadable.
        """
        try:
            conn = self._get_connection()
        except sqlite3.Error as e:
            logger.error("Could not open %s: %s", self.db_path, e)
            return None
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT payload FROM snapshots WHERE key = ?", (key,))
            row = cursor.fetchone()
            if row is None:
                return None
            return json.loads(row["payload"])
        except (sqlite3.Error, json.JSONDecodeError) as e:
            logger.error("Failed to load snapshot %r: %s", key, e)
            return None
        finally:
            conn.close()

    def save(self, key: str, snapshot: dict) -> bool:
        """Save a snapshot, replacing any previous one under the same key.

        Args:
            key: Snapshot key.
            snapshot: JSON-serialisable snapshot.

        Returns:
            True if the snapshot was written, False otherwise.
        """
        try:
            payload = json.dumps(snapshot)
            conn = self._get_connection()
        except (TypeError, ValueError, sqlite3.Error, OSError) as e:
            logger.error("Failed to save snapshot %r: %s", key, e)
            return False
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO snapshots (key, payload, updated_at)
                VALUES (?, ?, ?)
                """,
                (key, payload, datetime.now().isoformat()),
            )
            conn.commit()
            return True
        except sqlite3.Error as e:
            logger.error("Failed to save snapshot %r: %s", key, e)
            return False
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        """Delete a snapshot.

        Args:
            key: Snapshot key.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM snapshots WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys, optionally filtered by prefix."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT key FROM snapshots WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
                (prefix.replace("%", r"\%").replace("_", r"\_") + "%",),
            )
            return [row["key"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Portfolios ====================

    def load_portfolio(self, level: LevelKey) -> Optional[Portfolio]:
        """Load the ledger snapshot for a level.

        Args:
            level: Level number or 'custom'.

        Returns:
            Portfolio if stored and valid, None otherwise.
        """
        snapshot = self.load(portfolio_key(level))
        if snapshot is None:
            return None
        try:
            portfolio = Portfolio.from_snapshot(snapshot)
        except ValueError as e:
            logger.warning("Ignoring invalid portfolio snapshot for level %s: %s", level, e)
            return None
        # A zero starting value marks a placeholder, not a real ledger
        if portfolio.starting_value <= 0:
            return None
        return portfolio

    def save_portfolio(self, portfolio: Portfolio) -> bool:
        """Save a ledger snapshot under its level key."""
        return self.save(portfolio_key(portfolio.level), portfolio.to_snapshot())

    def get_all_portfolios(self) -> dict[str, Portfolio]:
        """Get every stored ledger keyed by level."""
        portfolios = {}
        for key in self.keys(PORTFOLIO_KEY_PREFIX):
            level = key[len(PORTFOLIO_KEY_PREFIX):]
            portfolio = self.load_portfolio(int(level) if level.isdigit() else level)
            if portfolio is not None:
                portfolios[level] = portfolio
        return portfolios

    # ==================== Progress ====================

    def load_progress(self) -> Optional[ProgressRecord]:
        snapshot = self.load(PROGRESS_KEY)
        if snapshot is None:
            return None
        try:
            return ProgressRecord.model_validate(snapshot)
        except ValueError as e:
            logger.warning("Ignoring invalid progress snapshot: %s", e)
            return None

    def save_progress(self, progress: ProgressRecord) -> bool:
        return self.save(PROGRESS_KEY, progress.model_dump(mode="json", by_alias=True))

    # ==================== Achievements ====================

    def load_achievements(self) -> Optional[Achievements]:
        snapshot = self.load(ACHIEVEMENTS_KEY)
        if snapshot is None:
            return None
        try:
            return Achievements.model_validate(snapshot)
        except ValueError as e:
            logger.warning("Ignoring invalid achievements snapshot: %s", e)
            return None

    def save_achievements(self, achievements: Achievements) -> bool:
        return self.save(
            ACHIEVEMENTS_KEY, achievements.model_dump(mode="json", by_alias=True)
        )

    # ==================== Export / Import ====================

    def export_data(self) -> str:
        """Export every stored snapshot as one JSON document.

        Returns:
            Pretty-printed JSON text.
        """
        portfolios = {
            key[len(PORTFOLIO_KEY_PREFIX):]: self.load(key)
            for key in self.keys(PORTFOLIO_KEY_PREFIX)
        }
        data = {
            "portfolios": portfolios,
            "progress": self.load(PROGRESS_KEY),
            "achievements": self.load(ACHIEVEMENTS_KEY),
            "market": self.load(MARKET_KEY),
            "exportDate": datetime.now().isoformat(),
        }
        return json.dumps(data, indent=2)

    def import_data(self, text: str) -> tuple[bool, str]:
        """Import a document produced by export_data.

        Args:
            text: JSON text.

        Returns:
            Tuple of (success, message).
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            return False, f"Invalid JSON: {e}"

        if not isinstance(data, dict) or not data.get("progress"):
            return False, "Invalid data format"

        try:
            ProgressRecord.model_validate(data["progress"])
            if data.get("achievements"):
                Achievements.model_validate(data["achievements"])
            portfolios = data.get("portfolios") or {}
            for snapshot in portfolios.values():
                Portfolio.from_snapshot(snapshot)
        except ValueError as e:
            return False, f"Invalid data format: {e}"

        for level, snapshot in portfolios.items():
            self.save(portfolio_key(level), snapshot)
        self.save(PROGRESS_KEY, data["progress"])
        if data.get("achievements"):
            self.save(ACHIEVEMENTS_KEY, data["achievements"])
        if data.get("market"):
            self.save(MARKET_KEY, data["market"])

        return True, "Data imported successfully"

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.REQUIRED_TABLES:
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()

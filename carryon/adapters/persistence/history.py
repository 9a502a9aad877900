"""
SQLite Scan History Adapter

Keeps the most recent completed checks so a traveller can review them.

Storage:
- One row per check, verdict and facts stored as JSON
- Capped: inserting beyond the limit trims the oldest records
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, List

from carryon.core.config import DEFAULT_HISTORY_LIMIT
from carryon.core.entities import ScanRecord

logger = logging.getLogger(__name__)


class SQLiteHistoryAdapter:
    """
    SQLite-based scan history.

    Implements HistoryPort from core/ports.py.

    Examples:

    ```
    history = SQLiteHistoryAdapter("~/.carryon/history.db")

    history.save_record(record)

    for record in history.get_records(limit=10):
        print(record.category_name, record.verdict.overall_status.value)
    ```
    """

    def __init__(
        self,
        db_path: str = "~/.carryon/history.db",
        limit: int = DEFAULT_HISTORY_LIMIT,
        create_if_missing: bool = True,
    ) -> None:
        if limit <= 0:
            raise ValueError(f"History limit must be positive, got {limit}")

        self.db_path = Path(db_path).expanduser()
        self.limit = limit
        self._lock = threading.Lock()

        if create_if_missing:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_database()

    def _init_database(self) -> None:
        """Creates the schema if needed."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS scan_records (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    record_id TEXT UNIQUE NOT NULL,
                    timestamp TEXT NOT NULL,
                    category_id TEXT NOT NULL,
                    overall_status TEXT NOT NULL,
                    data TEXT NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connection."""
        conn = sqlite3.connect(str(self.db_path), timeout=10.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def save_record(self, record: ScanRecord) -> str:
        """
        Store a completed check and trim the history to the limit.

        Args:
            record: Record to store

        Returns:
            ID of the stored record
        """
        data = json.dumps(record.to_dict(), ensure_ascii=False, sort_keys=True)

        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO scan_records
                    (record_id, timestamp, category_id, overall_status, data)
                    VALUES (?, ?, ?, ?, ?)
                """, (
                    record.record_id,
                    record.timestamp.isoformat(),
                    record.category_id,
                    record.verdict.overall_status.value,
                    data,
                ))

                # Keep only the newest `limit` rows
                cursor.execute("""
                    DELETE FROM scan_records WHERE id NOT IN (
                        SELECT id FROM scan_records ORDER BY id DESC LIMIT ?
                    )
                """, (self.limit,))
                trimmed = cursor.rowcount
                conn.commit()

        if trimmed > 0:
            logger.debug(f"Trimmed {trimmed} old history record(s)")
        return record.record_id

    def get_records(self, limit: int = DEFAULT_HISTORY_LIMIT) -> List[ScanRecord]:
        """
        Get records, newest first.

        Args:
            limit: Maximum number of records

        Returns:
            List of records
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT data FROM scan_records ORDER BY id DESC LIMIT ?",
                (limit,),
            )
            rows = cursor.fetchall()

        return [ScanRecord.from_dict(json.loads(row["data"])) for row in rows]

    def count(self) -> int:
        """Returns the number of stored records."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) as count FROM scan_records")
            row = cursor.fetchone()
        return row["count"] if row else 0

    def clear(self) -> int:
        """Deletes all records and returns how many were removed."""
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM scan_records")
                removed = cursor.rowcount
                conn.commit()

        logger.info(f"Cleared {removed} history record(s)")
        return removed

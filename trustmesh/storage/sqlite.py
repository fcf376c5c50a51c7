"""
SQLite storage base shared by the ledger, directory and mission stores.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ..config import MEMORY_DB, default_db_path


class SQLiteStore:
    """
    One SQLite connection guarded by a lock.

    A single shared connection (rather than one per thread) keeps
    ``:memory:`` databases visible to every thread using the store.
    """

    SCHEMA = ""

    def __init__(self, db_path: Optional[str] = None):
        """
        Args:
            db_path: Path to SQLite database, or ":memory:".
                Defaults to ~/.trustmesh/trustmesh.db
        """
        if db_path is None:
            db_path = default_db_path()
        elif db_path != MEMORY_DB:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.db_path = db_path
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False, timeout=30)
        self._conn.row_factory = sqlite3.Row
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        if self.SCHEMA:
            with self._lock:
                self._conn.executescript(self.SCHEMA)
                self._conn.commit()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements atomically; commit on success, roll back on error."""
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except BaseException:
                self._conn.rollback()
                raise

    def query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def query_one(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, params).fetchone()

    def close(self):
        with self._lock:
            self._conn.close()

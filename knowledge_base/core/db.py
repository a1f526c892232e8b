"""
SQLite connection handling for the document store.
"""

import sqlite3
import time
import uuid
from contextlib import contextmanager
from typing import Any, Generator, Sequence

from .config import ensure_db_directory
from .exceptions import StoreUnavailable
from ..util.logging import logger


class InstrumentedConnection:
    """Wraps a sqlite3 connection and logs every statement it runs.

    Exposes the subset of the connection interface the store uses and forwards
    each call to the wrapped connection, recording timing and a per-connection
    statement counter on the way.
    """

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn
        self.connection_id = uuid.uuid4().hex[:6]
        self.query_count = 0
        self.last_query = None

    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        self.query_count += 1
        self.last_query = sql
        start = time.perf_counter()
        try:
            cursor = self._conn.execute(sql, params)
        except sqlite3.Error as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.log_query(self.connection_id, self.query_count, sql, duration_ms, status="failed", error=str(e))
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        logger.log_query(self.connection_id, self.query_count, sql, duration_ms)
        return cursor

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        logger.debug(f"Closing connection [{self.connection_id}] after {self.query_count} queries")
        self._conn.close()

    @contextmanager
    def transaction(self) -> Generator["InstrumentedConnection", None, None]:
        """Commit on success, roll back on any error."""
        try:
            yield self
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise


def connect(db_path: str, retries: int = 3, retry_delay: float = 1.0) -> InstrumentedConnection:
    """Open a SQLite connection, retrying with linear backoff.

    Raises:
        StoreUnavailable: every attempt failed
    """
    last_error = None
    for attempt in range(1, retries + 1):
        try:
            ensure_db_directory(db_path)
            conn = sqlite3.connect(db_path, check_same_thread=False)
            conn.execute("PRAGMA foreign_keys = ON")
            logger.info(f"Connected to SQLite database at {db_path}")
            return InstrumentedConnection(conn)
        except (sqlite3.Error, OSError) as e:
            last_error = e
            logger.warning(f"Connection attempt {attempt}/{retries} failed: {e}")
            if attempt < retries:
                time.sleep(retry_delay * attempt)

    logger.error(f"All connection attempts failed: {last_error}")
    raise StoreUnavailable(f"Database unavailable: {last_error}")


def init_db(conn: InstrumentedConnection):
    """Initialize the database with required tables."""
    with conn.transaction():
        conn.execute('''
            CREATE TABLE IF NOT EXISTS documents (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                content TEXT NOT NULL,
                source TEXT NOT NULL,
                metadata TEXT NOT NULL DEFAULT '{}',
                embedding TEXT NOT NULL,
                dimension INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        conn.execute('''
            CREATE TABLE IF NOT EXISTS tags (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE
            )
        ''')

        conn.execute('''
            CREATE TABLE IF NOT EXISTS document_tags (
                document_id INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
                tag_id INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
                PRIMARY KEY (document_id, tag_id)
            )
        ''')


def health_check(conn: InstrumentedConnection) -> bool:
    """Check database health."""
    try:
        cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        table_names = [row[0] for row in cursor.fetchall()]
        required_tables = ['documents', 'tags', 'document_tags']
        return all(table in table_names for table in required_tables)
    except sqlite3.Error:
        return False

"""
Document store: persistence, identity assignment and candidate snapshots for
ranking.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
import json
import sqlite3
import threading
from typing import Dict, List, Optional, Sequence, Tuple

from .db import InstrumentedConnection, connect, health_check, init_db
from .exceptions import NotFound, StoreUnavailable
from .schema import DocumentPayload, DocumentRecord
from ..util.logging import logger

StoredDocument = Tuple[int, List[float], DocumentRecord]

_COLUMNS = "id, title, content, source, metadata, embedding, created_at, updated_at"


class DocumentStore(ABC):
    """Abstract interface for document storage."""

    @abstractmethod
    def append(self, vector: Sequence[float], payload: DocumentPayload) -> int:
        """Persist a new document and return its freshly assigned id."""
        pass

    @abstractmethod
    def all(self) -> List[StoredDocument]:
        """Snapshot of every (id, vector, record), in insertion order."""
        pass

    @abstractmethod
    def get(self, doc_id: int) -> Tuple[List[float], DocumentRecord]:
        """Return (vector, record) or raise NotFound."""
        pass

    @abstractmethod
    def update(self, doc_id: int, vector: Sequence[float], payload: DocumentPayload) -> DocumentRecord:
        """Replace a document's vector and payload or raise NotFound."""
        pass

    @abstractmethod
    def delete(self, doc_id: int) -> bool:
        """Delete a document, returning True, or raise NotFound."""
        pass

    @abstractmethod
    def list(self, limit: int = 10, offset: int = 0) -> List[DocumentRecord]:
        """Page through documents in insertion order."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored documents."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        pass

    def close(self) -> None:
        pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SqliteDocumentStore(DocumentStore):
    """SQLite-backed document store.

    Holds one connection for its whole lifetime; a lock serializes access so
    the instance can be shared across request threads. Vectors and metadata
    are stored as JSON text.
    """

    def __init__(self, db_path: str = ":memory:", retries: int = 3, retry_delay: float = 1.0,
                 connection: Optional[InstrumentedConnection] = None):
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn = connection or connect(db_path, retries=retries, retry_delay=retry_delay)
        with self._guard():
            init_db(self._conn)

    @contextmanager
    def _guard(self):
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as e:
                logger.error(f"Document store error: {e}")
                raise StoreUnavailable(f"Document store error: {e}") from e

    def _tags_for(self, conn: InstrumentedConnection, doc_ids: Optional[List[int]] = None) -> Dict[int, List[str]]:
        sql = (
            "SELECT dt.document_id, t.name FROM document_tags dt "
            "JOIN tags t ON t.id = dt.tag_id"
        )
        params: Tuple = ()
        if doc_ids is not None:
            if not doc_ids:
                return {}
            sql += f" WHERE dt.document_id IN ({', '.join('?' for _ in doc_ids)})"
            params = tuple(doc_ids)
        sql += " ORDER BY dt.document_id, t.name"

        tags: Dict[int, List[str]] = {}
        for doc_id, name in conn.execute(sql, params).fetchall():
            tags.setdefault(doc_id, []).append(name)
        return tags

    def _set_tags(self, conn: InstrumentedConnection, doc_id: int, tags: Sequence[str]):
        conn.execute("DELETE FROM document_tags WHERE document_id = ?", (doc_id,))
        for name in dict.fromkeys(t.strip() for t in tags if t and t.strip()):
            conn.execute("INSERT OR IGNORE INTO tags (name) VALUES (?)", (name,))
            tag_id = conn.execute("SELECT id FROM tags WHERE name = ?", (name,)).fetchone()[0]
            conn.execute(
                "INSERT OR IGNORE INTO document_tags (document_id, tag_id) VALUES (?, ?)",
                (doc_id, tag_id)
            )

    @staticmethod
    def _to_record(row, tags: Dict[int, List[str]]) -> Tuple[List[float], DocumentRecord]:
        doc_id, title, content, source, metadata, embedding, created_at, updated_at = row
        record = DocumentRecord(
            id=doc_id,
            title=title,
            content=content,
            source=source,
            metadata=json.loads(metadata),
            tags=tags.get(doc_id, []),
            created_at=datetime.fromisoformat(created_at),
            updated_at=datetime.fromisoformat(updated_at),
        )
        return json.loads(embedding), record

    def append(self, vector: Sequence[float], payload: DocumentPayload) -> int:
        timestamp = _now()
        with self._guard() as conn:
            with conn.transaction():
                cursor = conn.execute(
                    "INSERT INTO documents (title, content, source, metadata, embedding, dimension, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        payload.title,
                        payload.content,
                        payload.source,
                        json.dumps(payload.metadata),
                        json.dumps([float(v) for v in vector]),
                        len(vector),
                        timestamp,
                        timestamp,
                    )
                )
                doc_id = cursor.lastrowid
                self._set_tags(conn, doc_id, payload.tags)

        logger.log_document_operation("append", doc_id, payload.title, details={"source": payload.source})
        return doc_id

    def all(self) -> List[StoredDocument]:
        with self._guard() as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM documents ORDER BY id").fetchall()
            tags = self._tags_for(conn)

        snapshot = []
        for row in rows:
            vector, record = self._to_record(row, tags)
            snapshot.append((record.id, vector, record))
        return snapshot

    def get(self, doc_id: int) -> Tuple[List[float], DocumentRecord]:
        with self._guard() as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM documents WHERE id = ?", (doc_id,)).fetchone()
            if row is None:
                raise NotFound(doc_id)
            tags = self._tags_for(conn, [doc_id])

        return self._to_record(row, tags)

    def update(self, doc_id: int, vector: Sequence[float], payload: DocumentPayload) -> DocumentRecord:
        with self._guard() as conn:
            with conn.transaction():
                cursor = conn.execute(
                    "UPDATE documents SET title = ?, content = ?, source = ?, metadata = ?, "
                    "embedding = ?, dimension = ?, updated_at = ? WHERE id = ?",
                    (
                        payload.title,
                        payload.content,
                        payload.source,
                        json.dumps(payload.metadata),
                        json.dumps([float(v) for v in vector]),
                        len(vector),
                        _now(),
                        doc_id,
                    )
                )
                if cursor.rowcount == 0:
                    raise NotFound(doc_id)
                self._set_tags(conn, doc_id, payload.tags)

        logger.log_document_operation("update", doc_id, payload.title)
        return self.get(doc_id)[1]

    def delete(self, doc_id: int) -> bool:
        with self._guard() as conn:
            with conn.transaction():
                conn.execute("DELETE FROM document_tags WHERE document_id = ?", (doc_id,))
                cursor = conn.execute("DELETE FROM documents WHERE id = ?", (doc_id,))
                if cursor.rowcount == 0:
                    raise NotFound(doc_id)

        logger.log_document_operation("delete", doc_id)
        return True

    def list(self, limit: int = 10, offset: int = 0) -> List[DocumentRecord]:
        with self._guard() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM documents ORDER BY id LIMIT ? OFFSET ?",
                (limit, offset)
            ).fetchall()
            tags = self._tags_for(conn, [row[0] for row in rows])

        return [self._to_record(row, tags)[1] for row in rows]

    def count(self) -> int:
        with self._guard() as conn:
            return conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]

    def health_check(self) -> bool:
        with self._lock:
            return health_check(self._conn)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

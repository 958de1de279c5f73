"""SQLite document store — implements DocumentStore on a single SQLite file.

Each document is one JSON row keyed by (collection, id). Operations that must
be atomic across concurrent callers (unique create, array union/removal) run
inside a BEGIN IMMEDIATE transaction, so the read and the write happen under
the database write lock rather than as caller-side read-modify-write.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator

from hearth.ports.store_port import DuplicateKey, StoreUnavailable

logger = logging.getLogger(__name__)

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _json_path(field: str) -> str:
    if not _FIELD_RE.match(field):
        raise ValueError(f"Invalid field name: {field!r}")
    return f"$.{field}"


class SQLiteDocumentStore:
    """SQLite-backed implementation of DocumentStore."""

    def __init__(self, db_path: str | None = None, timeout: float | None = None) -> None:
        if db_path is None or timeout is None:
            from hearth.config import settings
            db_path = db_path or settings.DATABASE_PATH
            timeout = timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS

        self._db_path = db_path
        self._timeout = timeout
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self, write: bool = False) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction; wrap sqlite failures."""
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            logger.error("Store connection failed (%s): %s", self._db_path, exc)
            raise StoreUnavailable(f"Cannot open store: {exc}") from exc
        try:
            conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.error("Store operation failed: %s", exc)
            raise StoreUnavailable(f"Store operation failed: {exc}") from exc
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Create the documents table if it doesn't exist."""
        with self._transaction(write=True) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    seq        INTEGER PRIMARY KEY AUTOINCREMENT,
                    collection TEXT NOT NULL,
                    id         TEXT NOT NULL,
                    data       TEXT NOT NULL,
                    UNIQUE (collection, id)
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_documents_collection "
                "ON documents (collection)"
            )
        logger.debug("Documents table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_doc(row: sqlite3.Row) -> dict:
        doc = json.loads(row["data"])
        doc["id"] = row["id"]
        return doc

    @staticmethod
    def _fetch(conn: sqlite3.Connection, collection: str, doc_id: str) -> dict | None:
        row = conn.execute(
            "SELECT id, data FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        ).fetchone()
        if row is None:
            return None
        return SQLiteDocumentStore._row_to_doc(row)

    @staticmethod
    def _write(conn: sqlite3.Connection, collection: str, doc: dict) -> None:
        body = {k: v for k, v in doc.items() if k != "id"}
        conn.execute(
            "UPDATE documents SET data = ? WHERE collection = ? AND id = ?",
            (json.dumps(body), collection, doc["id"]),
        )

    # -- reads ---------------------------------------------------------------

    def get(self, collection: str, doc_id: str) -> dict | None:
        with self._transaction() as conn:
            return self._fetch(conn, collection, doc_id)

    def query(self, collection: str, field: str, value: Any) -> list[dict]:
        """Equality match on a top-level field, in insertion order."""
        path = _json_path(field)
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT id, data FROM documents "
                "WHERE collection = ? AND json_extract(data, ?) = ? ORDER BY seq",
                (collection, path, value),
            ).fetchall()
        return [self._row_to_doc(r) for r in rows]

    # -- writes --------------------------------------------------------------

    def create(
        self,
        collection: str,
        data: dict,
        doc_id: str | None = None,
        unique_fields: Iterable[str] = (),
    ) -> str:
        """Insert a document, enforcing unique_fields under the write lock."""
        doc_id = doc_id or uuid.uuid4().hex
        body = {k: v for k, v in data.items() if k != "id"}
        with self._transaction(write=True) as conn:
            if self._fetch(conn, collection, doc_id) is not None:
                raise DuplicateKey(collection, "id", doc_id)
            for field in unique_fields:
                taken = conn.execute(
                    "SELECT 1 FROM documents "
                    "WHERE collection = ? AND json_extract(data, ?) = ? LIMIT 1",
                    (collection, _json_path(field), body.get(field)),
                ).fetchone()
                if taken is not None:
                    raise DuplicateKey(collection, field, body.get(field))
            conn.execute(
                "INSERT INTO documents (collection, id, data) VALUES (?, ?, ?)",
                (collection, doc_id, json.dumps(body)),
            )
        logger.debug("Created %s/%s", collection, doc_id)
        return doc_id

    def update(self, collection: str, doc_id: str, fields: dict) -> bool:
        """Shallow-merge fields into an existing document."""
        with self._transaction(write=True) as conn:
            doc = self._fetch(conn, collection, doc_id)
            if doc is None:
                return False
            doc.update({k: v for k, v in fields.items() if k != "id"})
            self._write(conn, collection, doc)
        return True

    def upsert(self, collection: str, doc_id: str, fields: dict) -> None:
        """Shallow-merge fields, creating the document when absent."""
        body = {k: v for k, v in fields.items() if k != "id"}
        with self._transaction(write=True) as conn:
            doc = self._fetch(conn, collection, doc_id)
            if doc is None:
                conn.execute(
                    "INSERT INTO documents (collection, id, data) VALUES (?, ?, ?)",
                    (collection, doc_id, json.dumps(body)),
                )
                return
            doc.update(body)
            self._write(conn, collection, doc)

    def swap_field(
        self, collection: str, doc_id: str, field: str, value: Any
    ) -> Any:
        """Set one field and return its previous value, in one write transaction.

        Creates the document when absent (previous value is then None).
        """
        with self._transaction(write=True) as conn:
            doc = self._fetch(conn, collection, doc_id)
            if doc is None:
                conn.execute(
                    "INSERT INTO documents (collection, id, data) VALUES (?, ?, ?)",
                    (collection, doc_id, json.dumps({field: value})),
                )
                return None
            previous = doc.get(field)
            doc[field] = value
            self._write(conn, collection, doc)
        return previous

    def array_union(
        self, collection: str, doc_id: str, field: str, values: Iterable[Any]
    ) -> bool:
        """Append values not already present; existing order is kept."""
        with self._transaction(write=True) as conn:
            doc = self._fetch(conn, collection, doc_id)
            if doc is None:
                return False
            current = list(doc.get(field) or [])
            for value in values:
                if value not in current:
                    current.append(value)
            doc[field] = current
            self._write(conn, collection, doc)
        return True

    def array_remove(
        self, collection: str, doc_id: str, field: str, values: Iterable[Any]
    ) -> bool:
        """Drop every occurrence of values from an array field."""
        drop = list(values)
        with self._transaction(write=True) as conn:
            doc = self._fetch(conn, collection, doc_id)
            if doc is None:
                return False
            doc[field] = [v for v in (doc.get(field) or []) if v not in drop]
            self._write(conn, collection, doc)
        return True

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._transaction(write=True) as conn:
            cursor = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            deleted = cursor.rowcount > 0
        if deleted:
            logger.debug("Deleted %s/%s", collection, doc_id)
        return deleted

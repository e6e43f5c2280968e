"""
FILE: chyra/core/store.py
PURPOSE: Generic JSON document store on top of SQLite
EXPORTS:
  - DocumentStore (class)
    - get(collection, document_id) -> dict
    - list(collection, filters, sort_by, descending, limit) -> List[dict]
    - create(collection, data, document_id) -> dict
    - update(collection, document_id, fields) -> dict
    - update_batch(collection, updates, create) -> List[dict]
    - delete(collection, document_id) -> None
DEPENDENCIES:
  - sqlite3 (stdlib)
  - json (stdlib)
  - uuid (stdlib, document IDs)
  - loguru (logging)
  - chyra.core.exceptions (DocumentNotFoundError, InvalidInputError)
NOTES:
  - Schema lives in schema.sql next to this file, applied on first connection
  - Filters are equality matches on top-level JSON fields (json_extract)
  - Sorting falls back to created_at, then id, so equal keys stay stable
  - update_batch runs in one transaction: every write lands or none does
  - Knows nothing about tasks or positions
"""

import json
import re
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from loguru import logger

from .exceptions import DocumentNotFoundError, InvalidInputError


SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Field names end up inside a JSON path, so keep them plain identifiers
_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _field_path(field: str) -> str:
    if not _FIELD_RE.match(field):
        raise InvalidInputError(f"Invalid field name '{field}'")
    return f"$.{field}"


def new_id() -> str:
    """Generate a short unique document ID (12 hex chars)."""
    return uuid.uuid4().hex[:12]


class DocumentStore:
    """
    Collections of JSON documents in a single SQLite file.

    Each public method opens its own connection, matching a
    request-per-call usage pattern.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """
        Open a connection, commit on success and roll back on error.

        Creates the parent directory and the schema on first use.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            self._init_schema(conn)
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        cursor = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='documents'"
        )
        if cursor.fetchone() is None:
            with open(SCHEMA_PATH, "r") as f:
                conn.executescript(f.read())
            logger.debug("Initialized document store at {}", self.db_path)

    # --- Reads ---

    def _fetch(self, conn: sqlite3.Connection, collection: str, document_id: str) -> dict:
        row = conn.execute(
            "SELECT data FROM documents WHERE collection = ? AND id = ?",
            (collection, document_id),
        ).fetchone()
        if row is None:
            raise DocumentNotFoundError(collection, document_id)
        return json.loads(row["data"])

    def get(self, collection: str, document_id: str) -> dict:
        """
        Fetch one document by ID.

        Raises:
            DocumentNotFoundError: If the document doesn't exist
        """
        with self.connect() as conn:
            return self._fetch(conn, collection, document_id)

    def list(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """
        Query documents in a collection.

        Args:
            collection: Collection name
            filters: Field -> value equality filters (None value matches null/missing)
            sort_by: Field to sort by (default: created_at)
            descending: Sort direction for sort_by
            limit: Maximum number of documents to return

        Returns:
            Matching documents, ordered
        """
        clauses = ["collection = ?"]
        params: List[Any] = [collection]

        for field, value in (filters or {}).items():
            if value is None:
                clauses.append("json_extract(data, ?) IS NULL")
                params.append(_field_path(field))
            else:
                clauses.append("json_extract(data, ?) = ?")
                params.extend([_field_path(field), value])

        direction = "DESC" if descending else "ASC"
        order = ["json_extract(data, ?) " + direction]
        params.append(_field_path(sort_by or "created_at"))
        order.extend(["created_at " + direction, "id " + direction])

        sql = (
            "SELECT data FROM documents WHERE "
            + " AND ".join(clauses)
            + " ORDER BY "
            + ", ".join(order)
        )
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        with self.connect() as conn:
            rows = conn.execute(sql, params).fetchall()

        return [json.loads(row["data"]) for row in rows]

    # --- Writes ---

    def create(
        self,
        collection: str,
        data: Dict[str, Any],
        document_id: Optional[str] = None,
    ) -> dict:
        """
        Insert a new document and return it with id and timestamps set.

        Raises:
            sqlite3.IntegrityError: If document_id already exists
        """
        now = datetime.now().isoformat()
        with self.connect() as conn:
            return self._insert(conn, collection, data, now, document_id)

    def _insert(
        self,
        conn: sqlite3.Connection,
        collection: str,
        data: Dict[str, Any],
        now: str,
        document_id: Optional[str] = None,
    ) -> dict:
        document = dict(data)
        document["id"] = document_id or document.get("id") or new_id()
        document["created_at"] = now
        document["updated_at"] = now
        conn.execute(
            """
            INSERT INTO documents (collection, id, data, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (collection, document["id"], json.dumps(document), now, now),
        )
        return document

    def _apply_update(
        self,
        conn: sqlite3.Connection,
        collection: str,
        document_id: str,
        fields: Dict[str, Any],
        now: str,
    ) -> dict:
        document = self._fetch(conn, collection, document_id)
        document.update({k: v for k, v in fields.items() if k not in ("id", "created_at")})
        document["updated_at"] = now
        conn.execute(
            "UPDATE documents SET data = ?, updated_at = ? WHERE collection = ? AND id = ?",
            (json.dumps(document), now, collection, document_id),
        )
        return document

    def update(self, collection: str, document_id: str, fields: Dict[str, Any]) -> dict:
        """
        Merge fields into an existing document.

        Raises:
            DocumentNotFoundError: If the document doesn't exist
        """
        now = datetime.now().isoformat()
        with self.connect() as conn:
            return self._apply_update(conn, collection, document_id, fields, now)

    def update_batch(
        self,
        collection: str,
        updates: Dict[str, Dict[str, Any]],
        create: Optional[Dict[str, Any]] = None,
    ) -> List[dict]:
        """
        Apply several updates as one all-or-nothing unit.

        Args:
            collection: Collection name
            updates: document_id -> fields to merge
            create: Optional new document inserted in the same transaction

        Returns:
            Updated documents, in the order given, followed by the created one

        Raises:
            DocumentNotFoundError: If any document is missing (nothing is written)
        """
        now = datetime.now().isoformat()
        with self.connect() as conn:
            written = [
                self._apply_update(conn, collection, document_id, fields, now)
                for document_id, fields in updates.items()
            ]
            if create is not None:
                written.append(self._insert(conn, collection, create, now))
        logger.debug("Batch-wrote {} documents in '{}'", len(written), collection)
        return written

    def delete(self, collection: str, document_id: str) -> None:
        """
        Delete a document by ID.

        Raises:
            DocumentNotFoundError: If the document doesn't exist
        """
        with self.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            )
            if cursor.rowcount == 0:
                raise DocumentNotFoundError(collection, document_id)

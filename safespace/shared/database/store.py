"""Keyed record stores backing the moderation repositories.

A record is a JSON-native dict with at least ``id`` and ``created_at``
(ISO-8601 string). Filters match top-level keys by equality; a list or
tuple filter value matches any of its members.

Two implementations:
- InMemoryRecordStore for development and tests
- PostgresRecordStore, one JSONB document table per entity
"""
import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional

import psycopg2

from ..errors import PersistenceError
from ..utils.clock import from_iso, to_iso
from .connection import ConnectionManager

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Filters = Dict[str, Any]

TABLES: FrozenSet[str] = frozenset({
    "content",
    "behavior",
    "reports",
    "disputes",
    "crisis_logs",
    "reputations",
})


def _check_table(table: str) -> None:
    if table not in TABLES:
        raise ValueError(f"Unknown table: {table}")


class RecordStore(ABC):
    """Interface of the injected persistence collaborator."""

    @abstractmethod
    def get(self, table: str, record_id: str) -> Optional[Record]:
        """Return the record with this id, or None."""

    @abstractmethod
    def find(
        self,
        table: str,
        filters: Optional[Filters] = None,
        created_after: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        """Return matching records, newest first."""

    @abstractmethod
    def count(
        self,
        table: str,
        filters: Optional[Filters] = None,
        created_after: Optional[datetime] = None,
    ) -> int:
        """Count matching records."""

    @abstractmethod
    def insert(self, table: str, record: Record) -> Record:
        """Insert a new record. Raises PersistenceError if the id exists."""

    @abstractmethod
    def update(self, table: str, record_id: str, changes: Record) -> Optional[Record]:
        """Merge changes into an existing record. Returns None if absent."""

    def health_check(self) -> Dict[str, Any]:
        return {"status": "ok", "healthy": True}


class InMemoryRecordStore(RecordStore):
    """Dict-backed store. In-memory for dev; PostgreSQL in prod."""

    def __init__(self):
        self._tables: Dict[str, Dict[str, Record]] = {name: {} for name in TABLES}
        self._lock = threading.Lock()

    @staticmethod
    def _matches(record: Record, filters: Optional[Filters], created_after: Optional[datetime]) -> bool:
        for key, expected in (filters or {}).items():
            actual = record.get(key)
            if isinstance(expected, (list, tuple, set, frozenset)):
                if actual not in expected:
                    return False
            elif actual != expected:
                return False
        if created_after is not None:
            created_at = from_iso(record.get("created_at"))
            if created_at is None or created_at <= created_after:
                return False
        return True

    def get(self, table, record_id):
        _check_table(table)
        with self._lock:
            record = self._tables[table].get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def find(self, table, filters=None, created_after=None, limit=None):
        _check_table(table)
        with self._lock:
            matches = [
                copy.deepcopy(record)
                for record in self._tables[table].values()
                if self._matches(record, filters, created_after)
            ]
        matches.sort(key=lambda r: from_iso(r.get("created_at")), reverse=True)
        if limit is not None:
            matches = matches[:limit]
        return matches

    def count(self, table, filters=None, created_after=None):
        _check_table(table)
        with self._lock:
            return sum(
                1 for record in self._tables[table].values()
                if self._matches(record, filters, created_after)
            )

    def insert(self, table, record):
        _check_table(table)
        with self._lock:
            if record["id"] in self._tables[table]:
                raise PersistenceError(f"Duplicate id in {table}: {record['id']}")
            self._tables[table][record["id"]] = copy.deepcopy(record)
        return copy.deepcopy(record)

    def update(self, table, record_id, changes):
        _check_table(table)
        with self._lock:
            current = self._tables[table].get(record_id)
            if current is None:
                return None
            current.update(copy.deepcopy(changes))
            return copy.deepcopy(current)


class PostgresRecordStore(RecordStore):
    """JSONB document store on PostgreSQL.

    Each table has the shape ``(id TEXT PRIMARY KEY, created_at TIMESTAMPTZ,
    doc JSONB)``. Every psycopg2 failure is wrapped in PersistenceError.
    """

    def __init__(self, connection_manager: ConnectionManager):
        self.connection_manager = connection_manager

    def ensure_schema(self) -> None:
        """Create the document tables if they do not exist."""
        statements = []
        for table in sorted(TABLES):
            statements.append(
                f"CREATE TABLE IF NOT EXISTS {table} ("
                "id TEXT PRIMARY KEY, "
                "created_at TIMESTAMPTZ NOT NULL, "
                "doc JSONB NOT NULL)"
            )
            statements.append(
                f"CREATE INDEX IF NOT EXISTS {table}_doc_idx ON {table} USING GIN (doc)"
            )
        self._execute(statements)
        logger.info("RECORD_STORE_SCHEMA_READY", extra={"tables": sorted(TABLES)})

    def _execute(self, statements: List[str]) -> None:
        try:
            with self.connection_manager.get_connection() as conn:
                with conn.cursor() as cur:
                    for statement in statements:
                        cur.execute(statement)
                conn.commit()
        except psycopg2.Error as e:
            logger.error("RECORD_STORE_DDL_FAILED", extra={"error": str(e)})
            raise PersistenceError(str(e)) from e

    @staticmethod
    def _where(filters: Optional[Filters], created_after: Optional[datetime]):
        clauses: List[str] = []
        params: List[Any] = []
        equality = {}
        for key, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set, frozenset)):
                clauses.append("(doc->>%s) = ANY(%s)")
                params.extend([key, [str(v) for v in value]])
            else:
                equality[key] = value
        if equality:
            clauses.append("doc @> %s::jsonb")
            params.append(json.dumps(equality))
        if created_after is not None:
            clauses.append("created_at > %s")
            params.append(created_after)
        where = " WHERE " + " AND ".join(clauses) if clauses else ""
        return where, params

    def _query(self, sql: str, params: List[Any], fetch: str, commit: bool = False):
        try:
            with self.connection_manager.get_connection() as conn:
                try:
                    with conn.cursor() as cur:
                        cur.execute(sql, params)
                        if fetch == "one":
                            result = cur.fetchone()
                        elif fetch == "all":
                            result = cur.fetchall()
                        else:
                            result = cur.rowcount
                    if commit:
                        conn.commit()
                    return result
                except psycopg2.Error:
                    conn.rollback()
                    raise
        except psycopg2.Error as e:
            logger.error(
                "RECORD_STORE_QUERY_FAILED",
                extra={"error": str(e), "statement": sql.split(" ", 1)[0]}
            )
            raise PersistenceError(str(e)) from e

    @staticmethod
    def _load(doc: Any) -> Record:
        # psycopg2 decodes jsonb to dict already; text columns need json.loads
        return doc if isinstance(doc, dict) else json.loads(doc)

    def get(self, table, record_id):
        _check_table(table)
        row = self._query(
            f"SELECT doc FROM {table} WHERE id = %s", [record_id], fetch="one"
        )
        return self._load(row[0]) if row else None

    def find(self, table, filters=None, created_after=None, limit=None):
        _check_table(table)
        where, params = self._where(filters, created_after)
        sql = f"SELECT doc FROM {table}{where} ORDER BY created_at DESC"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(limit)
        rows = self._query(sql, params, fetch="all")
        return [self._load(row[0]) for row in rows]

    def count(self, table, filters=None, created_after=None):
        _check_table(table)
        where, params = self._where(filters, created_after)
        row = self._query(f"SELECT COUNT(*) FROM {table}{where}", params, fetch="one")
        return row[0] if row else 0

    def insert(self, table, record):
        _check_table(table)
        self._query(
            f"INSERT INTO {table} (id, created_at, doc) VALUES (%s, %s, %s::jsonb)",
            [record["id"], from_iso(record["created_at"]), json.dumps(record)],
            fetch="none",
            commit=True,
        )
        return record

    def update(self, table, record_id, changes):
        _check_table(table)
        row = self._query(
            f"UPDATE {table} SET doc = doc || %s::jsonb WHERE id = %s RETURNING doc",
            [json.dumps(changes), record_id],
            fetch="one",
            commit=True,
        )
        return self._load(row[0]) if row else None

    def health_check(self):
        return self.connection_manager.health_check()


def serialize_value(value: Any) -> Any:
    """Convert enums and datetimes to their stored JSON form."""
    if isinstance(value, datetime):
        return to_iso(value)
    if hasattr(value, "value") and not isinstance(value, (str, int, float, bool)):
        return value.value
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value

# herbaltrace/row_store.py
"""
Thin row-store client over a MongoDB database.

Every table is a collection; every row carries a string ``id`` next to
Mongo's ``_id`` (which never leaves this module). Relations are expanded
with one ``$in`` query per relation per level, never per row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from bson import ObjectId
from flask import current_app
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from herbaltrace.errors import DuplicateRow, StoreError

log = logging.getLogger(__name__)

TABLES = (
    "profiles",
    "herbs",
    "collectors",
    "collection_events",
    "batches",
    "quality_tests",
    "processing_steps",
    "products",
    "compliance_rules",
)

# columns that are only returned when include_hidden=True
HIDDEN_COLUMNS = {
    "profiles": ("password_hash",),
}

UNIQUE_COLUMNS = {
    "profiles": ("email",),
    "products": ("product_code", "qr_code"),
}


def new_id() -> str:
    return str(ObjectId())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Relation:
    """Foreign-key expansion: ``row[name] = <table row where foreign_key == row[local_key]>``."""

    name: str
    table: str
    local_key: str
    foreign_key: str = "id"
    nested: Tuple["Relation", ...] = ()


class RowStore:
    def __init__(self, db):
        self.db = db

    # -------------------------
    # Setup
    # -------------------------
    def ensure_indexes(self) -> None:
        try:
            for table in TABLES:
                self.db[table].create_index([("id", ASCENDING)], unique=True)
            for table, columns in UNIQUE_COLUMNS.items():
                for col in columns:
                    self.db[table].create_index([(col, ASCENDING)], unique=True, sparse=True)
        except PyMongoError as e:
            raise StoreError(f"Index setup failed: {e}") from e

    # -------------------------
    # Reads
    # -------------------------
    def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        in_filters: Optional[Dict[str, Sequence[Any]]] = None,
        relations: Iterable[Relation] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: int = 0,
        include_hidden: bool = False,
    ) -> List[Dict[str, Any]]:
        query = self._query(filters, in_filters)
        rows = self._find(table, query, order_by, descending, limit, include_hidden)
        relations = tuple(relations)
        if rows and relations:
            self._expand(rows, relations)
        return rows

    def select_one(
        self,
        table: str,
        filters: Dict[str, Any],
        relations: Iterable[Relation] = (),
        include_hidden: bool = False,
    ) -> Optional[Dict[str, Any]]:
        rows = self.select(table, filters, relations=relations, limit=1, include_hidden=include_hidden)
        return rows[0] if rows else None

    def get(self, table: str, row_id: str, relations: Iterable[Relation] = ()) -> Optional[Dict[str, Any]]:
        return self.select_one(table, {"id": row_id}, relations=relations)

    # -------------------------
    # Writes
    # -------------------------
    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(row)
        doc.setdefault("id", new_id())
        doc.setdefault("created_at", utc_now_iso())
        try:
            self.db[table].insert_one(doc)
        except DuplicateKeyError as e:
            raise DuplicateRow(f"Duplicate row in {table}", table=table) from e
        except PyMongoError as e:
            log.error("insert into %s failed: %s", table, e)
            raise StoreError(f"Failed to write {table}") from e
        return self._public(table, doc)

    def update(
        self,
        table: str,
        row_id: str,
        patch: Dict[str, Any],
        guard: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Apply ``patch`` to the row with ``id == row_id``.
        When ``guard`` is given the row must also match it; returns None if no row matched.
        """
        query = {"id": row_id, **(guard or {})}
        try:
            doc = self.db[table].find_one_and_update(
                query,
                {"$set": dict(patch)},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise DuplicateRow(f"Duplicate row in {table}", table=table) from e
        except PyMongoError as e:
            log.error("update of %s/%s failed: %s", table, row_id, e)
            raise StoreError(f"Failed to update {table}") from e
        return self._public(table, doc) if doc else None

    # -------------------------
    # Internals
    # -------------------------
    @staticmethod
    def _query(filters, in_filters) -> Dict[str, Any]:
        query: Dict[str, Any] = dict(filters or {})
        for field, values in (in_filters or {}).items():
            query[field] = {"$in": list(values)}
        return query

    def _find(self, table, query, order_by=None, descending=False, limit=0, include_hidden=False):
        projection = {"_id": 0}
        if not include_hidden:
            for col in HIDDEN_COLUMNS.get(table, ()):
                projection[col] = 0
        try:
            cur = self.db[table].find(query, projection)
            if order_by:
                cur = cur.sort([(order_by, DESCENDING if descending else ASCENDING)])
            if limit:
                cur = cur.limit(limit)
            return list(cur)
        except PyMongoError as e:
            log.error("select from %s failed: %s", table, e)
            raise StoreError(f"Failed to fetch {table}") from e

    def _expand(self, rows: List[Dict[str, Any]], relations: Tuple[Relation, ...]) -> None:
        for rel in relations:
            keys = list(dict.fromkeys(r.get(rel.local_key) for r in rows if r.get(rel.local_key) is not None))
            related: Dict[Any, Dict[str, Any]] = {}
            if keys:
                related_rows = self._find(rel.table, {rel.foreign_key: {"$in": keys}})
                if rel.nested:
                    self._expand(related_rows, rel.nested)
                related = {r.get(rel.foreign_key): r for r in related_rows}
            for r in rows:
                r[rel.name] = related.get(r.get(rel.local_key))

    @staticmethod
    def _public(table: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        hidden = HIDDEN_COLUMNS.get(table, ())
        return {k: v for k, v in doc.items() if k != "_id" and k not in hidden}


def init_row_store(app, db) -> RowStore:
    store = RowStore(db)
    app.extensions["row_store"] = store
    return store


def get_row_store() -> RowStore:
    store = current_app.extensions.get("row_store")
    if store is None:
        raise StoreError("Row store is not initialized")
    return store

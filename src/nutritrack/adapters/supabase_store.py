"""Supabase-backed document store.

Each logical table is a Postgres table with a text ``key`` primary key and a
jsonb ``doc`` column.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from supabase import Client

from nutritrack.errors import StoreError
from nutritrack.services.store import Document, NutritionStore, StoreTransaction

_logger = logging.getLogger(__name__)


@dataclass
class _SupabaseTransaction(StoreTransaction):
    """Reads through to Supabase and buffers writes until commit."""

    client: Client
    tables: frozenset[str]
    pending: dict[tuple[str, str], Document | None] = field(default_factory=dict)

    def _check(self, table: str) -> None:
        if table not in self.tables:
            raise StoreError(f"Table {table!r} is not part of this transaction")

    async def get(self, table: str, key: str) -> Document | None:
        self._check(table)
        if (table, key) in self.pending:
            return self.pending[(table, key)]
        response = (
            self.client.table(table).select("key, doc").eq("key", key).limit(1).execute()
        )
        if not response.data:
            return None
        return _parse_doc(response.data[0])

    async def put(self, table: str, key: str, document: Document) -> None:
        self._check(table)
        self.pending[(table, key)] = document

    async def delete(self, table: str, key: str) -> None:
        self._check(table)
        self.pending[(table, key)] = None

    async def range(
        self, table: str, field: str, low: str, high: str
    ) -> list[Document]:
        self._check(table)
        column = f"doc->>{field}"
        response = (
            self.client.table(table)
            .select("key, doc")
            .gte(column, low)
            .lte(column, high)
            .order(column, desc=False)
            .execute()
        )
        rows = {str(row["key"]): _parse_doc(row) for row in response.data or []}
        for (pending_table, key), document in self.pending.items():
            if pending_table != table:
                continue
            value = document.get(field) if document is not None else None
            if isinstance(value, str) and low <= value <= high:
                rows[key] = document
            else:
                rows.pop(key, None)
        return sorted(rows.values(), key=lambda document: str(document.get(field)))

    def flush(self) -> None:
        """Write buffered upserts, then deletes, table by table."""
        upserts: dict[str, list[dict[str, object]]] = {}
        deletes: dict[str, list[str]] = {}
        for (table, key), document in self.pending.items():
            if document is None:
                deletes.setdefault(table, []).append(key)
            else:
                upserts.setdefault(table, []).append({"key": key, "doc": document})
        for table, rows in upserts.items():
            self.client.table(table).upsert(rows, on_conflict="key").execute()
        for table, keys in deletes.items():
            self.client.table(table).delete().in_("key", keys).execute()


@dataclass
class SupabaseStore(NutritionStore):
    """Supabase implementation of the store contract.

    Writes made inside a transaction are only sent when the body completes,
    so a failing body leaves the database untouched.
    """

    client: Client
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @asynccontextmanager
    async def transaction(self, *tables: str) -> AsyncIterator[StoreTransaction]:
        """Open a transaction over the given tables."""
        if not tables:
            raise StoreError("A transaction needs at least one table")
        async with self._lock:
            transaction = _SupabaseTransaction(
                client=self.client, tables=frozenset(tables)
            )
            try:
                yield transaction
            except BaseException:
                _logger.info("Discarded buffered writes on %s", ", ".join(tables))
                raise
            transaction.flush()

    async def close(self) -> None:
        """The Supabase client holds no resources that need closing."""
        return None


def _parse_doc(row: dict[str, object]) -> Document:
    document = row.get("doc")
    if not isinstance(document, dict):
        raise StoreError(f"Row {row.get('key')!r} has no document")
    return document

"""In-process transactional document store."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from copy import deepcopy
from dataclasses import dataclass, field

from nutritrack.errors import StoreError
from nutritrack.services.store import Document, NutritionStore, StoreTransaction

_logger = logging.getLogger(__name__)


@dataclass
class _InMemoryTransaction(StoreTransaction):
    """Works on private copies of the declared tables."""

    working: dict[str, dict[str, Document]]

    def _table(self, table: str) -> dict[str, Document]:
        if table not in self.working:
            raise StoreError(f"Table {table!r} is not part of this transaction")
        return self.working[table]

    async def get(self, table: str, key: str) -> Document | None:
        document = self._table(table).get(key)
        return deepcopy(document) if document is not None else None

    async def put(self, table: str, key: str, document: Document) -> None:
        self._table(table)[key] = deepcopy(document)

    async def delete(self, table: str, key: str) -> None:
        self._table(table).pop(key, None)

    async def range(
        self, table: str, field: str, low: str, high: str
    ) -> list[Document]:
        rows = self._table(table)
        matches = [
            deepcopy(document)
            for document in rows.values()
            if isinstance(document.get(field), str) and low <= document[field] <= high
        ]
        return sorted(matches, key=lambda document: str(document[field]))


@dataclass
class InMemoryStore(NutritionStore):
    """Document store held in memory.

    Each transaction copies the tables it declares, and the copies replace
    the live tables only when the body finishes without raising.
    Transactions are serialized with a lock.
    """

    tables: dict[str, dict[str, Document]] = field(default_factory=dict)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @asynccontextmanager
    async def transaction(self, *tables: str) -> AsyncIterator[StoreTransaction]:
        """Open a transaction over the given tables."""
        if not tables:
            raise StoreError("A transaction needs at least one table")
        async with self._lock:
            working = {table: deepcopy(self.tables.get(table, {})) for table in tables}
            try:
                yield _InMemoryTransaction(working=working)
            except BaseException:
                _logger.info("Rolled back transaction on %s", ", ".join(tables))
                raise
            self.tables.update(working)

    async def close(self) -> None:
        """Nothing to release."""
        return None

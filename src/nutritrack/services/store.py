"""Persistence contract consumed by the aggregation engine."""

from contextlib import AbstractAsyncContextManager
from typing import Protocol

MEALS = "meals"
DAILY_LOGS = "daily_logs"
PROFILES = "profiles"

Document = dict[str, object]


class StoreTransaction(Protocol):
    """Reads and writes that commit together or not at all."""

    async def get(self, table: str, key: str) -> Document | None:
        """Return a document by key, if present."""

    async def put(self, table: str, key: str, document: Document) -> None:
        """Insert or replace a document."""

    async def delete(self, table: str, key: str) -> None:
        """Delete a document; missing keys are ignored."""

    async def range(
        self, table: str, field: str, low: str, high: str
    ) -> list[Document]:
        """Return documents whose string ``field`` lies in [low, high]."""


class NutritionStore(Protocol):
    """Transactional document store keyed by table and key."""

    def transaction(
        self, *tables: str
    ) -> AbstractAsyncContextManager[StoreTransaction]:
        """Open a transaction limited to the given tables."""

    async def close(self) -> None:
        """Release store resources."""

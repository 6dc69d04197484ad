"""Shared test fixtures."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from nutritrack.adapters.in_memory_store import InMemoryStore
from nutritrack.config import Settings
from nutritrack.containers import AppContainer
from nutritrack.domain.meals import Meal
from nutritrack.errors import StoreError
from nutritrack.services.calculator import NutritionCalculator
from nutritrack.services.catalog import FoodCatalog
from nutritrack.services.daily_logs import DailyLogService
from nutritrack.services.dates import Clock
from nutritrack.services.entries import EntryService, build_meal
from nutritrack.services.history import HistoryService
from nutritrack.services.meal_analysis import AnalysisClient, MealAnalysisService
from nutritrack.services.profiles import ProfileService
from nutritrack.services.search import FoodSearch
from nutritrack.services.store import Document, NutritionStore, StoreTransaction

KOLKATA = ZoneInfo("Asia/Kolkata")
NOW = datetime(2024, 3, 10, 13, 0, tzinfo=KOLKATA)
TODAY = "2024-03-10"


def fixed_clock(moment: datetime = NOW) -> Clock:
    def clock() -> datetime:
        return moment

    return clock


@dataclass
class FakeAnalysisClient(AnalysisClient):
    """Fake analysis client returning a fixed payload."""

    payload: object = field(
        default_factory=lambda: {
            "items": [
                {
                    "name": "Roti",
                    "grams": 80,
                    "portion": None,
                    "calories": 999,
                    "protein": 1,
                    "carbs": 1,
                    "fat": 1,
                    "fiber": None,
                    "micros": ["Iron: 1mg"],
                },
                {
                    "name": "Gulab Jamun",
                    "grams": "50g",
                    "portion": None,
                    "calories": 150,
                    "protein": 2,
                    "carbs": 25,
                    "fat": 5,
                    "fiber": 0,
                    "micros": [],
                },
            ]
        }
    )
    calls: list[dict[str, object]] = field(default_factory=list)

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        image_data_url: str | None,
        schema: dict[str, object],
    ) -> object:
        self.calls.append({"prompt": prompt, "image_data_url": image_data_url})
        return self.payload


@dataclass
class _FailingTransaction(StoreTransaction):
    inner: StoreTransaction
    fail_table: str

    async def get(self, table: str, key: str) -> Document | None:
        return await self.inner.get(table, key)

    async def put(self, table: str, key: str, document: Document) -> None:
        if table == self.fail_table:
            raise StoreError(f"Simulated write failure on {table}")
        await self.inner.put(table, key, document)

    async def delete(self, table: str, key: str) -> None:
        await self.inner.delete(table, key)

    async def range(
        self, table: str, field: str, low: str, high: str
    ) -> list[Document]:
        return await self.inner.range(table, field, low, high)


@dataclass
class FailingStore(NutritionStore):
    """Wraps an in-memory store and fails every write to one table."""

    inner: InMemoryStore
    fail_table: str

    @asynccontextmanager
    async def transaction(self, *tables: str) -> AsyncIterator[StoreTransaction]:
        async with self.inner.transaction(*tables) as transaction:
            yield _FailingTransaction(inner=transaction, fail_table=self.fail_table)

    async def close(self) -> None:
        await self.inner.close()


def make_meal(
    entry_service: EntryService,
    *portions: tuple[str, float],
    timestamp: datetime = NOW,
) -> Meal:
    items = [entry_service.manual_item(food_id, grams) for food_id, grams in portions]
    return build_meal(items, timestamp)


@pytest.fixture
def settings() -> Settings:
    return Settings(timezone="Asia/Kolkata")


@pytest.fixture
def catalog() -> FoodCatalog:
    return FoodCatalog.load()


@pytest.fixture
def calculator(catalog: FoodCatalog) -> NutritionCalculator:
    return NutritionCalculator(catalog)


@pytest.fixture
def search(catalog: FoodCatalog) -> FoodSearch:
    return FoodSearch(catalog)


@pytest.fixture
def entry_service(calculator: NutritionCalculator, search: FoodSearch) -> EntryService:
    return EntryService(calculator=calculator, search=search)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def daily_log_service(
    store: InMemoryStore, entry_service: EntryService
) -> DailyLogService:
    return DailyLogService(store=store, entries=entry_service, clock=fixed_clock())


@pytest.fixture
def profile_service(store: InMemoryStore) -> ProfileService:
    return ProfileService(store)


@pytest.fixture
def history_service(store: InMemoryStore) -> HistoryService:
    return HistoryService(store)


@pytest.fixture
def analysis_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    catalog: FoodCatalog,
    store: InMemoryStore,
    calculator: NutritionCalculator,
    search: FoodSearch,
    entry_service: EntryService,
    daily_log_service: DailyLogService,
    profile_service: ProfileService,
    history_service: HistoryService,
    analysis_client: FakeAnalysisClient,
) -> AppContainer:
    analysis_service = MealAnalysisService(
        client=analysis_client,
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )

    async def close_resources() -> None:
        await store.close()

    return AppContainer(
        settings=settings,
        catalog=catalog,
        store=store,
        calculator=calculator,
        search=search,
        entry_service=entry_service,
        daily_log_service=daily_log_service,
        profile_service=profile_service,
        history_service=history_service,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )

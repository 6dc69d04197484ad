"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutritrack.adapters.in_memory_store import InMemoryStore
from nutritrack.adapters.openai_meal_client import OpenAIMealClient
from nutritrack.adapters.supabase_store import SupabaseStore
from nutritrack.config import Settings
from nutritrack.services.calculator import NutritionCalculator
from nutritrack.services.catalog import FoodCatalog
from nutritrack.services.daily_logs import DailyLogService
from nutritrack.services.dates import local_clock
from nutritrack.services.entries import EntryService
from nutritrack.services.history import HistoryService
from nutritrack.services.meal_analysis import MealAnalysisService
from nutritrack.services.profiles import ProfileService
from nutritrack.services.search import FoodSearch
from nutritrack.services.store import NutritionStore

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog: FoodCatalog
    store: NutritionStore
    calculator: NutritionCalculator
    search: FoodSearch
    entry_service: EntryService
    daily_log_service: DailyLogService
    profile_service: ProfileService
    history_service: HistoryService
    analysis_service: MealAnalysisService | None
    close_resources: Callable[[], Awaitable[None]]


def build_store(settings: Settings) -> NutritionStore:
    """Use Supabase when it is configured, otherwise keep data in memory."""
    if settings.uses_supabase:
        return SupabaseStore(
            create_client(settings.supabase_url, settings.supabase_service_key)
        )
    _logger.info("Supabase is not configured; using the in-memory store")
    return InMemoryStore()


def build_container(
    settings: Settings | None = None, store: NutritionStore | None = None
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    resolved_store = store or build_store(resolved_settings)
    catalog = FoodCatalog.load(resolved_settings.catalog_path)
    calculator = NutritionCalculator(catalog)
    search = FoodSearch(catalog)
    entry_service = EntryService(calculator=calculator, search=search)
    daily_log_service = DailyLogService(
        store=resolved_store,
        entries=entry_service,
        clock=local_clock(resolved_settings.timezone),
    )

    openai_client = None
    analysis_service = None
    if resolved_settings.openai_api_key:
        openai_client = OpenAIMealClient.create(resolved_settings.openai_api_key)
        analysis_service = MealAnalysisService(
            client=openai_client,
            model=resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
            store=resolved_settings.openai_store,
        )

    async def close_resources() -> None:
        if openai_client is not None:
            await openai_client.close()
        await resolved_store.close()

    return AppContainer(
        settings=resolved_settings,
        catalog=catalog,
        store=resolved_store,
        calculator=calculator,
        search=search,
        entry_service=entry_service,
        daily_log_service=daily_log_service,
        profile_service=ProfileService(resolved_store),
        history_service=HistoryService(resolved_store),
        analysis_service=analysis_service,
        close_resources=close_resources,
    )

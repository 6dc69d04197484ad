"""Tests for container wiring."""

import asyncio

from nutritrack.adapters.in_memory_store import InMemoryStore
from nutritrack.adapters.supabase_store import SupabaseStore
from nutritrack.config import Settings
from nutritrack.containers import build_container, build_store


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    assert isinstance(container.store, InMemoryStore)
    assert container.analysis_service is None
    assert container.calculator.calculate_nutrients("roti", 40).calories == 120
    assert container.daily_log_service.store is container.store
    asyncio.run(container.close_resources())


def test_build_container_enables_analysis_with_key() -> None:
    container = build_container(Settings(openai_api_key="openai-key", openai_model="m"))

    assert container.analysis_service is not None
    assert container.analysis_service.model == "m"
    asyncio.run(container.close_resources())


def test_build_store_uses_supabase_when_configured(monkeypatch) -> None:
    created: list[tuple[str, str]] = []

    def fake_create_client(url: str, key: str) -> object:
        created.append((url, key))
        return object()

    monkeypatch.setattr("nutritrack.containers.create_client", fake_create_client)
    settings = Settings(
        supabase_url="https://example.supabase.co", supabase_service_key="service-key"
    )

    store = build_store(settings)

    assert isinstance(store, SupabaseStore)
    assert created == [("https://example.supabase.co", "service-key")]

"""Tests for the daily aggregation engine."""

import asyncio
from datetime import UTC, datetime

import pytest

from nutritrack.adapters.in_memory_store import InMemoryStore
from nutritrack.domain.models import ActivityLevel, Gender, Goal
from nutritrack.domain.nutrition import DEFAULT_TARGETS, NutritionTargets, SourceDatabase
from nutritrack.errors import InvalidPortionError, StoreError
from nutritrack.services.daily_logs import DailyLogService
from nutritrack.services.entries import EntryService
from nutritrack.services.profiles import ProfileService
from nutritrack.services.store import DAILY_LOGS, MEALS
from nutritrack.services.totals import recompute_from_scratch
from tests.conftest import KOLKATA, NOW, TODAY, FailingStore, fixed_clock, make_meal

NEW_TARGETS = NutritionTargets(calories=1800, protein=90, carbs=200, fat=55, fiber=28)


def test_today_log_is_synthesized_without_writing(
    daily_log_service: DailyLogService, store: InMemoryStore
) -> None:
    log = asyncio.run(daily_log_service.get_today_log())

    assert log.date == TODAY
    assert log.meals == ()
    assert log.total_nutrients.calories == 0
    assert log.targets == DEFAULT_TARGETS
    assert not store.tables.get(DAILY_LOGS)


def test_today_log_uses_profile_targets(
    daily_log_service: DailyLogService, profile_service: ProfileService
) -> None:
    profile = asyncio.run(
        profile_service.onboard(
            name="Asha",
            gender=Gender.FEMALE,
            age=30,
            height_cm=160,
            weight_kg=55,
            activity_level=ActivityLevel.MODERATE,
            goal=Goal.MAINTAIN,
        )
    )

    log = asyncio.run(daily_log_service.get_today_log())

    assert log.targets == profile.targets


def test_save_meal_creates_and_increments_log(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    breakfast = make_meal(
        entry_service, ("idli", 120), timestamp=datetime(2024, 3, 10, 8, 0, tzinfo=KOLKATA)
    )
    lunch = make_meal(entry_service, ("roti", 40), ("moong_dal", 150))

    first = asyncio.run(daily_log_service.save_meal(breakfast))
    second = asyncio.run(daily_log_service.save_meal(lunch))

    assert first.total_nutrients == recompute_from_scratch([breakfast])
    assert second.total_nutrients.calories == (
        breakfast.total_nutrients.calories + lunch.total_nutrients.calories
    )
    assert second.total_nutrients.source_database == SourceDatabase.CUSTOM
    assert [meal.id for meal in second.meals] == [breakfast.id, lunch.id]
    assert second.targets == DEFAULT_TARGETS

    stored = asyncio.run(daily_log_service.get_today_log())
    assert stored == second


def test_saving_same_meal_twice_is_rejected(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    meal = make_meal(entry_service, ("roti", 40))
    asyncio.run(daily_log_service.save_meal(meal))

    with pytest.raises(StoreError):
        asyncio.run(daily_log_service.save_meal(meal))

    log = asyncio.run(daily_log_service.get_today_log())
    assert log.total_nutrients.calories == 120


def test_incremental_total_matches_recompute(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    meals = [
        make_meal(entry_service, ("poha", 180)),
        make_meal(entry_service, ("chai", 150), ("samosa", 80)),
        make_meal(entry_service, ("paneer_curry", 200), ("roti", 80)),
    ]
    for meal in meals:
        asyncio.run(daily_log_service.save_meal(meal))

    incremental = asyncio.run(daily_log_service.get_today_log())
    recomputed = asyncio.run(daily_log_service.recompute_day(TODAY))
    again = asyncio.run(daily_log_service.recompute_day(TODAY))

    assert recomputed.total_nutrients == incremental.total_nutrients
    assert again == recomputed


def test_meal_after_midnight_attaches_to_local_day(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    late = make_meal(
        entry_service, ("chai", 150), timestamp=datetime(2024, 3, 11, 0, 15, tzinfo=KOLKATA)
    )

    log = asyncio.run(daily_log_service.save_meal(late))

    assert log.date == "2024-03-11"
    assert asyncio.run(daily_log_service.get_log("2024-03-10")).meals == ()


def test_utc_timestamp_lands_on_local_day(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    meal = make_meal(
        entry_service, ("roti", 40), timestamp=datetime(2024, 3, 10, 18, 45, tzinfo=UTC)
    )

    log = asyncio.run(daily_log_service.save_meal(meal))

    assert log.date == "2024-03-11"
    assert log.meals[0].timestamp == datetime(2024, 3, 11, 0, 15, tzinfo=KOLKATA)
    assert asyncio.run(daily_log_service.get_log("2024-03-10")).meals == ()
    assert asyncio.run(daily_log_service.get_log("2024-03-11")) == log


def test_saved_log_orders_backdated_meal_first(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    dinner = make_meal(
        entry_service, ("roti", 80), timestamp=datetime(2024, 3, 10, 20, 0, tzinfo=KOLKATA)
    )
    breakfast = make_meal(
        entry_service, ("idli", 120), timestamp=datetime(2024, 3, 10, 8, 0, tzinfo=KOLKATA)
    )
    asyncio.run(daily_log_service.save_meal(dinner))

    saved = asyncio.run(daily_log_service.save_meal(breakfast))

    assert [meal.id for meal in saved.meals] == [breakfast.id, dinner.id]
    assert asyncio.run(daily_log_service.get_today_log()) == saved


def test_delete_meal_recomputes_day(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    keep = make_meal(entry_service, ("roti", 40))
    drop = make_meal(entry_service, ("samosa", 80))
    asyncio.run(daily_log_service.save_meal(keep))
    asyncio.run(daily_log_service.save_meal(drop))

    log = asyncio.run(daily_log_service.delete_meal(drop.id))

    assert log is not None
    assert [meal.id for meal in log.meals] == [keep.id]
    assert log.total_nutrients == recompute_from_scratch([keep])


def test_delete_unknown_meal_returns_none(daily_log_service: DailyLogService) -> None:
    assert asyncio.run(daily_log_service.delete_meal("missing")) is None


def test_delete_then_readd_matches_never_deleting(
    store: InMemoryStore, entry_service: EntryService
) -> None:
    first = make_meal(entry_service, ("white_rice", 150), ("moong_dal", 150))
    second = make_meal(entry_service, ("curd", 100), ("apple", 182))

    untouched = DailyLogService(store=InMemoryStore(), entries=entry_service, clock=fixed_clock())
    asyncio.run(untouched.save_meal(first))
    expected = asyncio.run(untouched.save_meal(second))

    service = DailyLogService(store=store, entries=entry_service, clock=fixed_clock())
    asyncio.run(service.save_meal(first))
    asyncio.run(service.save_meal(second))
    asyncio.run(service.delete_meal(second.id))
    actual = asyncio.run(service.save_meal(second))

    assert actual.total_nutrients == expected.total_nutrients


def test_update_targets_only_touches_today(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    yesterday = make_meal(
        entry_service, ("roti", 40), timestamp=datetime(2024, 3, 9, 20, 0, tzinfo=KOLKATA)
    )
    asyncio.run(daily_log_service.save_meal(yesterday))

    today = asyncio.run(daily_log_service.update_daily_targets(NEW_TARGETS))

    assert today.date == TODAY
    assert today.targets == NEW_TARGETS
    assert today.total_nutrients.calories == 0
    assert asyncio.run(daily_log_service.get_log("2024-03-09")).targets == DEFAULT_TARGETS


def test_targets_snapshot_survives_meal_changes(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    asyncio.run(daily_log_service.update_daily_targets(NEW_TARGETS))
    meal = make_meal(entry_service, ("roti", 40))

    assert asyncio.run(daily_log_service.save_meal(meal)).targets == NEW_TARGETS
    assert asyncio.run(daily_log_service.delete_meal(meal.id)).targets == NEW_TARGETS


def test_update_item_grams_replaces_meal(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    meal = make_meal(entry_service, ("roti", 40), ("curd", 100))
    asyncio.run(daily_log_service.save_meal(meal))
    roti_item = meal.items[0]

    log = asyncio.run(daily_log_service.update_meal_item_grams(meal.id, roti_item.id, 80))

    assert log is not None
    edited = log.meals[0]
    assert edited.id == meal.id
    assert edited.items[0].portion_grams == 80
    assert edited.total_nutrients.calories == 240 + 60
    assert log.total_nutrients.calories == 300


def test_update_item_grams_unknown_ids(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    meal = make_meal(entry_service, ("roti", 40))
    asyncio.run(daily_log_service.save_meal(meal))

    assert asyncio.run(daily_log_service.update_meal_item_grams("missing", "x", 10)) is None
    assert asyncio.run(daily_log_service.update_meal_item_grams(meal.id, "x", 10)) is None


def test_invalid_edit_leaves_state_untouched(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    meal = make_meal(entry_service, ("roti", 40))
    before = asyncio.run(daily_log_service.save_meal(meal))

    with pytest.raises(InvalidPortionError):
        asyncio.run(daily_log_service.update_meal_item_grams(meal.id, meal.items[0].id, 0))

    assert asyncio.run(daily_log_service.get_today_log()) == before


def test_failed_write_rolls_back(entry_service: EntryService) -> None:
    inner = InMemoryStore()
    service = DailyLogService(
        store=FailingStore(inner=inner, fail_table=DAILY_LOGS),
        entries=entry_service,
        clock=fixed_clock(),
    )
    meal = make_meal(entry_service, ("roti", 40))

    with pytest.raises(StoreError):
        asyncio.run(service.save_meal(meal))

    assert not inner.tables.get(MEALS)
    assert not inner.tables.get(DAILY_LOGS)


def test_get_log_for_other_day(
    daily_log_service: DailyLogService, entry_service: EntryService
) -> None:
    meal = make_meal(entry_service, ("banana", 118), timestamp=NOW.replace(day=2))
    asyncio.run(daily_log_service.save_meal(meal))

    log = asyncio.run(daily_log_service.get_log("2024-03-02"))

    assert [stored.id for stored in log.meals] == [meal.id]
    assert log.total_nutrients.calories == meal.total_nutrients.calories

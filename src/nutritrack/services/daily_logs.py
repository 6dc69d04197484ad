"""Daily aggregation engine: meals in, consistent per-day totals out."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime

from nutritrack.documents import (
    daily_log_from_document,
    daily_log_to_document,
    meal_from_document,
    meal_to_document,
)
from nutritrack.domain.meals import DailyLog, Meal
from nutritrack.domain.nutrition import NutritionTargets
from nutritrack.errors import StoreError
from nutritrack.services.dates import (
    Clock,
    local_clock,
    local_date_key,
    to_local,
    today_key,
)
from nutritrack.services.entries import EntryService
from nutritrack.services.profiles import read_profile_targets
from nutritrack.services.store import (
    DAILY_LOGS,
    MEALS,
    PROFILES,
    NutritionStore,
    StoreTransaction,
)
from nutritrack.services.totals import (
    apply_incremental,
    meal_totals,
    recompute_from_scratch,
    zero_nutrients,
)

_logger = logging.getLogger(__name__)


@dataclass
class DailyLogService:
    """Maintains one DailyLog per local calendar day.

    Adding a meal folds its totals into the cached day total (incremental
    strategy). Deleting or editing a meal rebuilds the day total from the
    remaining meals (full recompute strategy). Every operation runs in a
    single store transaction, so a failure leaves the previous state intact.
    """

    store: NutritionStore
    entries: EntryService
    clock: Clock = field(default_factory=local_clock)

    def localize(self, timestamp: datetime) -> datetime:
        """Move an aware timestamp into the clock's zone."""
        return to_local(timestamp, self.clock())

    async def save_meal(self, meal: Meal) -> DailyLog:
        """Persist a new meal and add it to its day's running total."""
        meal = replace(meal, timestamp=self.localize(meal.timestamp))
        day = local_date_key(meal.timestamp)
        async with self.store.transaction(MEALS, DAILY_LOGS, PROFILES) as transaction:
            if await transaction.get(MEALS, meal.id) is not None:
                raise StoreError(f"Meal {meal.id} is already saved")
            log = await _read_log(transaction, day)
            if log is None:
                log = _empty_log(day, await read_profile_targets(transaction))
            await transaction.put(MEALS, meal.id, meal_to_document(meal))
            updated = DailyLog(
                date=day,
                meals=tuple(sorted((*log.meals, meal), key=_meal_order)),
                total_nutrients=apply_incremental(log.total_nutrients, meal),
                targets=log.targets,
            )
            await transaction.put(DAILY_LOGS, day, daily_log_to_document(updated))
        _logger.info("Saved meal %s on %s", meal.id, day)
        return updated

    async def delete_meal(self, meal_id: str) -> DailyLog | None:
        """Delete a meal and recompute its day; None if the meal is unknown."""
        async with self.store.transaction(MEALS, DAILY_LOGS, PROFILES) as transaction:
            document = await transaction.get(MEALS, meal_id)
            if document is None:
                return None
            meal = meal_from_document(document)
            await transaction.delete(MEALS, meal_id)
            log = await _recompute(transaction, local_date_key(meal.timestamp))
        _logger.info("Deleted meal %s from %s", meal_id, log.date)
        return log

    async def update_meal_item_grams(
        self, meal_id: str, item_id: str, grams: float
    ) -> DailyLog | None:
        """Change one item's weight, replace the meal and recompute its day."""
        async with self.store.transaction(MEALS, DAILY_LOGS, PROFILES) as transaction:
            document = await transaction.get(MEALS, meal_id)
            if document is None:
                return None
            meal = meal_from_document(document)
            if not any(item.id == item_id for item in meal.items):
                return None
            items = tuple(
                self.entries.rescale(item, grams) if item.id == item_id else item
                for item in meal.items
            )
            edited = replace(meal, items=items, total_nutrients=meal_totals(items))
            await transaction.put(MEALS, meal_id, meal_to_document(edited))
            return await _recompute(transaction, local_date_key(meal.timestamp))

    async def recompute_day(self, date_key: str) -> DailyLog:
        """Rebuild a day's totals from its stored meals."""
        async with self.store.transaction(MEALS, DAILY_LOGS, PROFILES) as transaction:
            return await _recompute(transaction, date_key)

    async def update_daily_targets(self, targets: NutritionTargets) -> DailyLog:
        """Replace today's targets snapshot, creating today's log if needed."""
        day = today_key(self.clock)
        async with self.store.transaction(MEALS, DAILY_LOGS) as transaction:
            log = await _read_log(transaction, day)
            if log is None:
                log = _empty_log(day, targets)
            else:
                log = replace(log, targets=targets)
            await transaction.put(DAILY_LOGS, day, daily_log_to_document(log))
        return log

    async def get_today_log(self) -> DailyLog:
        """Return today's log, synthesizing an unsaved empty one if missing."""
        return await self.get_log(today_key(self.clock))

    async def get_log(self, date_key: str) -> DailyLog:
        """Return a day's log without ever creating a stored row."""
        async with self.store.transaction(MEALS, DAILY_LOGS, PROFILES) as transaction:
            log = await _read_log(transaction, date_key)
            if log is None:
                log = _empty_log(date_key, await read_profile_targets(transaction))
        return log


def _empty_log(day: str, targets: NutritionTargets) -> DailyLog:
    return DailyLog(date=day, meals=(), total_nutrients=zero_nutrients(), targets=targets)


def _meal_order(meal: Meal) -> str:
    return meal.timestamp.isoformat()


async def _load_day_meals(transaction: StoreTransaction, day: str) -> list[Meal]:
    """Return a day's meals ordered by wall-clock time."""
    documents = await transaction.range(MEALS, "day", day, day)
    meals = [meal_from_document(document) for document in documents]
    meals.sort(key=_meal_order)
    return meals


async def _read_log(transaction: StoreTransaction, day: str) -> DailyLog | None:
    document = await transaction.get(DAILY_LOGS, day)
    if document is None:
        return None
    return daily_log_from_document(document, await _load_day_meals(transaction, day))


async def _recompute(transaction: StoreTransaction, day: str) -> DailyLog:
    meals = await _load_day_meals(transaction, day)
    document = await transaction.get(DAILY_LOGS, day)
    if document is not None:
        targets = daily_log_from_document(document, meals).targets
    else:
        targets = await read_profile_targets(transaction)
    log = DailyLog(
        date=day,
        meals=tuple(meals),
        total_nutrients=recompute_from_scratch(meals),
        targets=targets,
    )
    await transaction.put(DAILY_LOGS, day, daily_log_to_document(log))
    return log

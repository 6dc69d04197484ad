"""History service over stored daily logs."""

from collections import defaultdict
from dataclasses import dataclass

from nutritrack.documents import daily_log_from_document, meal_from_document
from nutritrack.domain.history import DailyTotals, PeriodSummary
from nutritrack.domain.meals import DailyLog, Meal
from nutritrack.services.dates import parse_date_key, shift_date_key
from nutritrack.services.store import DAILY_LOGS, MEALS, NutritionStore
from nutritrack.services.totals import round_calories, round_macro, safe_add, zero_nutrients

DEFAULT_PERIOD_DAYS = 7


@dataclass
class HistoryService:
    """Read-only views over a window of days."""

    store: NutritionStore

    async def list_logs(self, start_key: str, end_key: str) -> list[DailyLog]:
        """Return stored logs between two day keys, inclusive, oldest first."""
        parse_date_key(start_key)
        parse_date_key(end_key)
        async with self.store.transaction(DAILY_LOGS, MEALS) as transaction:
            log_documents = await transaction.range(DAILY_LOGS, "date", start_key, end_key)
            meal_documents = await transaction.range(MEALS, "day", start_key, end_key)

        meal_documents.sort(key=lambda document: str(document.get("timestamp", "")))
        meals_by_day: dict[str, list[Meal]] = defaultdict(list)
        for document in meal_documents:
            meals_by_day[str(document["day"])].append(meal_from_document(document))
        return [
            daily_log_from_document(document, meals_by_day[str(document["date"])])
            for document in log_documents
        ]

    async def period_summary(
        self, end_key: str, days: int = DEFAULT_PERIOD_DAYS
    ) -> PeriodSummary:
        """Return per-day totals and averages for the window ending at end_key."""
        if days < 1:
            raise ValueError("days must be at least 1")
        start_key = shift_date_key(end_key, -(days - 1))
        logs = {log.date: log for log in await self.list_logs(start_key, end_key)}

        daily = []
        for offset in range(days):
            day = shift_date_key(start_key, offset)
            log = logs.get(day)
            if log is None:
                daily.append(
                    DailyTotals(day=day, nutrients=zero_nutrients(), targets=None, meal_count=0)
                )
            else:
                daily.append(
                    DailyTotals(
                        day=day,
                        nutrients=log.total_nutrients,
                        targets=log.targets,
                        meal_count=len(log.meals),
                    )
                )

        calories = sum(entry.nutrients.calories for entry in daily)
        return PeriodSummary(
            start=start_key,
            end=end_key,
            daily=tuple(daily),
            avg_calories=round_calories(calories / days),
            avg_protein=_average([entry.nutrients.protein for entry in daily]),
            avg_carbs=_average([entry.nutrients.carbs for entry in daily]),
            avg_fat=_average([entry.nutrients.fat for entry in daily]),
            avg_fiber=_average([entry.nutrients.fiber for entry in daily]),
        )


def _average(values: list[float]) -> float:
    total = 0.0
    for value in values:
        total = safe_add(total, value)
    return round_macro(total / len(values))

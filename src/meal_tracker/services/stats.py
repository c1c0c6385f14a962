"""Daily totals derived from persisted meal records."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from meal_tracker.domain.errors import InvalidTimezone
from meal_tracker.domain.meals import DailySummary, DailyTotals, MealRecord
from meal_tracker.services.records import MealRecordRepository

ZERO_TOTALS = DailyTotals(calories=0.0, protein=0.0, carbohydrates=0.0, fat=0.0)


def aggregate(records: Iterable[MealRecord]) -> DailyTotals:
    """Sum calories and macronutrients across records."""
    total = ZERO_TOTALS
    for record in records:
        macros = record.nutrition.macronutrients
        total = DailyTotals(
            calories=total.calories + record.nutrition.calories,
            protein=total.protein + macros.protein,
            carbohydrates=total.carbohydrates + macros.carbohydrates,
            fat=total.fat + macros.fat,
        )
    return total


def resolve_timezone(timezone_name: str) -> ZoneInfo:
    """Return a ZoneInfo or raise InvalidTimezone."""
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimezone(f"Unknown time zone: {timezone_name}") from exc


def day_window(
    timezone_name: str, now: datetime | None = None
) -> tuple[datetime, datetime]:
    """Return [local midnight, next local midnight) of now, in UTC."""
    tz = resolve_timezone(timezone_name)
    local_now = (now or datetime.now(tz=UTC)).astimezone(tz)
    start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    # Wall-clock arithmetic: the next midnight, 23h or 25h away on DST days.
    end = start + timedelta(days=1)
    return start.astimezone(UTC), end.astimezone(UTC)


@dataclass
class StatsService:
    """Service for reading meal records and computing today's totals."""

    repository: MealRecordRepository

    def get_today(
        self, user_id: str, timezone_name: str, now: datetime | None = None
    ) -> DailySummary:
        """Return today's meals and totals in the caller's time zone."""
        start, end = day_window(timezone_name, now)
        meals = self.repository.query_by_window(user_id, start, end)
        return DailySummary(
            day=start.astimezone(ZoneInfo(timezone_name)).date(),
            timezone=timezone_name,
            totals=aggregate(meals),
            meals=meals,
        )

    def list_window(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealRecord]:
        """Return meals logged within [start, end)."""
        if start.tzinfo is None or end.tzinfo is None:
            raise ValueError("start and end must be timezone-aware")
        if end <= start:
            return []
        return self.repository.query_by_window(user_id, start, end)

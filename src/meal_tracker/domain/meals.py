"""Domain models for meal logging."""

from dataclasses import dataclass
from datetime import date, datetime

from meal_tracker.domain.nutrition import NutritionInfo


@dataclass(frozen=True)
class NewMealRecord:
    """Meal data handed to the store; id and timestamp are assigned there."""

    image_url: str
    food_items: list[str]
    nutrition: NutritionInfo


@dataclass(frozen=True)
class MealRecord:
    """A persisted, immutable meal log entry."""

    id: str
    user_id: str
    created_at: datetime
    image_url: str
    food_items: list[str]
    nutrition: NutritionInfo


@dataclass(frozen=True)
class DailyTotals:
    """Summed calories and macros for a set of meals."""

    calories: float
    protein: float
    carbohydrates: float
    fat: float


@dataclass(frozen=True)
class DailySummary:
    """Today's meals for a user together with their totals."""

    day: date
    timezone: str
    totals: DailyTotals
    meals: list[MealRecord]

"""Nutrition computation for recognized food items."""

import json
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from meal_tracker.domain.errors import ServiceFailure
from meal_tracker.domain.nutrition import NutritionInfo
from meal_tracker.services.recognition import StructuredOutputClient
from meal_tracker.services.retry import call_with_retry

_NUTRIENT_LIST_SCHEMA: dict[str, object] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "amount": {"type": "string"},
        },
        "required": ["name", "amount"],
        "additionalProperties": False,
    },
}

NUTRITION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "calories": {"type": "number", "minimum": 0},
        "macronutrients": {
            "type": "object",
            "properties": {
                "protein": {"type": "number", "minimum": 0},
                "carbohydrates": {"type": "number", "minimum": 0},
                "fat": {"type": "number", "minimum": 0},
            },
            "required": ["protein", "carbohydrates", "fat"],
            "additionalProperties": False,
        },
        "vitamins": _NUTRIENT_LIST_SCHEMA,
        "minerals": _NUTRIENT_LIST_SCHEMA,
    },
    "required": ["calories", "macronutrients", "vitamins", "minerals"],
    "additionalProperties": False,
}

_logger = logging.getLogger(__name__)


class NutritionComputer(Protocol):
    """Maps food labels to nutrition data for the whole meal."""

    async def compute(self, food_items: list[str]) -> NutritionInfo:
        """Return validated nutrition data for the listed items."""


@dataclass
class LlmNutritionComputer(NutritionComputer):
    """Nutrition computer backed by an LLM with structured outputs."""

    client: StructuredOutputClient
    model: str
    reasoning_effort: str | None
    store: bool
    retry_attempts: int = 0

    async def compute(self, food_items: list[str]) -> NutritionInfo:
        """Ask the model for meal nutrition and validate the answer."""
        raw = await call_with_retry(
            lambda: self.client.complete(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=_build_prompt(food_items),
                schema_name="meal_nutrition",
                schema=NUTRITION_SCHEMA,
            ),
            action="compute_nutrition",
            attempts=self.retry_attempts,
        )
        try:
            nutrition = NutritionInfo.model_validate(raw)
        except ValidationError as exc:
            raise ServiceFailure(f"Malformed nutrition response: {exc}") from exc
        _logger.info(
            "Computed nutrition for %s items: %s kcal",
            len(food_items),
            nutrition.calories,
        )
        return nutrition


def _build_prompt(food_items: list[str]) -> str:
    return (
        "Estimate the nutritional content of a single meal made of these "
        f"food items: {json.dumps(food_items)}. "
        "Assume typical single-serving portions. "
        "Report total calories in kcal and protein, carbohydrates and fat in "
        "grams for the whole meal, plus the notable vitamins and minerals "
        "with their amounts including units. List each nutrient once."
    )

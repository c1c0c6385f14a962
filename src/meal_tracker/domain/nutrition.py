"""Nutrition models returned by the nutrition service."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Macronutrients(BaseModel):
    """Macronutrients in grams."""

    model_config = ConfigDict(frozen=True)

    protein: float = Field(ge=0.0)
    carbohydrates: float = Field(ge=0.0)
    fat: float = Field(ge=0.0)


class NutrientAmount(BaseModel):
    """Named vitamin or mineral with a free-text quantity such as "9 mg"."""

    model_config = ConfigDict(frozen=True)

    name: str
    amount: str


class NutritionInfo(BaseModel):
    """Structured nutrition data for a whole meal."""

    model_config = ConfigDict(frozen=True)

    calories: float = Field(ge=0.0)
    macronutrients: Macronutrients
    vitamins: list[NutrientAmount] = Field(default_factory=list)
    minerals: list[NutrientAmount] = Field(default_factory=list)

    @field_validator("vitamins", "minerals")
    @classmethod
    def _unique_names(cls, value: list[NutrientAmount]) -> list[NutrientAmount]:
        seen: set[str] = set()
        for entry in value:
            key = entry.name.strip().lower()
            if key in seen:
                raise ValueError(f"duplicate nutrient name: {entry.name}")
            seen.add(key)
        return value

"""Request models for the HTTP API."""

from pydantic import BaseModel, Field


class WorkoutPlanCreate(BaseModel):
    """Body of a request to save a generated workout plan."""

    plan: dict[str, object]
    based_on_equipment: str = Field(min_length=1)

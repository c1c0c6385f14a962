"""Domain models for saved workout plans."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class WorkoutPlan:
    """A generated workout plan saved for a user."""

    id: str
    user_id: str
    plan: dict[str, object]
    based_on_equipment: str
    created_at: datetime

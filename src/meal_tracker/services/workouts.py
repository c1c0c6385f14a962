"""Saved workout plans."""

from dataclasses import dataclass
from typing import Protocol

from meal_tracker.domain.workouts import WorkoutPlan


class WorkoutPlanRepository(Protocol):
    """Append-only store of workout plans."""

    def append(
        self, user_id: str, plan: dict[str, object], based_on_equipment: str
    ) -> WorkoutPlan:
        """Persist a plan and return it with id and created_at assigned."""

    def list_recent(self, user_id: str, limit: int) -> list[WorkoutPlan]:
        """Return the newest plans first."""


@dataclass
class WorkoutPlanService:
    """Service for saving and listing generated workout plans."""

    repository: WorkoutPlanRepository

    def save_plan(
        self, user_id: str, plan: dict[str, object], based_on_equipment: str
    ) -> WorkoutPlan:
        """Persist a workout plan for the user."""
        return self.repository.append(user_id, plan, based_on_equipment.strip())

    def list_recent(self, user_id: str, limit: int = 10) -> list[WorkoutPlan]:
        """Return the user's most recent plans."""
        return self.repository.list_recent(user_id, max(limit, 1))

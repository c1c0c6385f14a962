"""Supabase repository for workout plans."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from meal_tracker.domain.errors import LoadFailure, PersistenceFailure
from meal_tracker.domain.workouts import WorkoutPlan
from meal_tracker.services.workouts import WorkoutPlanRepository


@dataclass
class SupabaseWorkoutPlanRepository(WorkoutPlanRepository):
    """Supabase implementation for workout plans."""

    client: Client

    def append(
        self, user_id: str, plan: dict[str, object], based_on_equipment: str
    ) -> WorkoutPlan:
        """Insert a workout plan row and return it."""
        try:
            response = (
                self.client.table("workout_plans")
                .insert(
                    {
                        "user_id": user_id,
                        "plan": plan,
                        "based_on_equipment": based_on_equipment,
                    }
                )
                .execute()
            )
        except Exception as exc:
            raise PersistenceFailure(f"Failed to save workout plan: {exc}") from exc
        if not response.data:
            raise PersistenceFailure("Failed to save workout plan")
        return _parse_plan(response.data[0])

    def list_recent(self, user_id: str, limit: int) -> list[WorkoutPlan]:
        """Return the user's newest workout plans."""
        try:
            response = (
                self.client.table("workout_plans")
                .select("id, user_id, plan, based_on_equipment, created_at")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
            return [_parse_plan(row) for row in response.data or []]
        except Exception as exc:
            raise LoadFailure(f"Could not load workout plans: {exc}") from exc


def _parse_plan(row: dict[str, object]) -> WorkoutPlan:
    plan = row.get("plan")
    return WorkoutPlan(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        plan=plan if isinstance(plan, dict) else {},
        based_on_equipment=str(row.get("based_on_equipment") or ""),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )

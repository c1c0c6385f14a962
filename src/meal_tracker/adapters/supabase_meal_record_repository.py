"""Supabase repository for meal records."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import ValidationError
from supabase import Client

from meal_tracker.domain.errors import LoadFailure, PersistenceFailure
from meal_tracker.domain.meals import MealRecord, NewMealRecord
from meal_tracker.domain.nutrition import NutritionInfo
from meal_tracker.services.records import MealRecordRepository

_COLUMNS = "id, user_id, created_at, image_url, food_items, nutrition"


@dataclass
class SupabaseMealRecordRepository(MealRecordRepository):
    """Supabase implementation for meal records.

    ``created_at`` is assigned by the database, never by the client.
    """

    client: Client
    table_name: str = "meal_records"

    def append(self, user_id: str, record: NewMealRecord) -> MealRecord:
        """Insert a meal record row and return the stored row."""
        try:
            response = (
                self.client.table(self.table_name)
                .insert(
                    {
                        "user_id": user_id,
                        "image_url": record.image_url,
                        "food_items": list(record.food_items),
                        "nutrition": record.nutrition.model_dump(mode="json"),
                    }
                )
                .execute()
            )
        except Exception as exc:
            raise PersistenceFailure(f"Failed to save meal record: {exc}") from exc
        if not response.data:
            raise PersistenceFailure("Failed to save meal record")
        try:
            return _parse_record(response.data[0])
        except (KeyError, TypeError, ValueError, ValidationError) as exc:
            raise PersistenceFailure(
                f"Saved meal record could not be read back: {exc}"
            ) from exc

    def query_by_window(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealRecord]:
        """Return meal records created in [start, end), newest first."""
        try:
            response = (
                self.client.table(self.table_name)
                .select(_COLUMNS)
                .eq("user_id", user_id)
                .gte("created_at", start.isoformat())
                .lt("created_at", end.isoformat())
                .order("created_at", desc=True)
                .execute()
            )
            records = [_parse_record(row) for row in response.data or []]
        except Exception as exc:
            raise LoadFailure(f"Could not load your meal logs: {exc}") from exc
        # Enforce the half-open window locally as well.
        records = [record for record in records if start <= record.created_at < end]
        records.sort(key=lambda record: record.created_at, reverse=True)
        return records

    def list_image_urls(self, user_id: str) -> set[str]:
        """Return image URLs referenced by the user's meal records."""
        try:
            response = (
                self.client.table(self.table_name)
                .select("image_url")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as exc:
            raise LoadFailure(f"Could not load meal image references: {exc}") from exc
        rows = response.data or []
        return {str(row["image_url"]) for row in rows if row.get("image_url")}


def _parse_record(row: dict[str, object]) -> MealRecord:
    return MealRecord(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        image_url=str(row.get("image_url") or ""),
        food_items=[str(item) for item in row.get("food_items") or []],
        nutrition=NutritionInfo.model_validate(row.get("nutrition") or {}),
    )

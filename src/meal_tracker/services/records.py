"""Persistence interface for meal records."""

from datetime import datetime
from typing import Protocol

from meal_tracker.domain.meals import MealRecord, NewMealRecord


class MealRecordRepository(Protocol):
    """Append-only store of meal records, namespaced by user."""

    def append(self, user_id: str, record: NewMealRecord) -> MealRecord:
        """Persist a record and return it with id and created_at assigned.

        Raises PersistenceFailure when the write is not durable.
        """

    def query_by_window(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealRecord]:
        """Return records with start <= created_at < end, newest first.

        Raises LoadFailure when the query fails.
        """

    def list_image_urls(self, user_id: str) -> set[str]:
        """Return every image URL referenced by the user's records."""

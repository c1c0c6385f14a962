"""Meal logging pipeline: photo in, persisted meal record out."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TypeVar

from meal_tracker.domain.errors import (
    MealLoggingInProgress,
    NoFoodDetected,
    NotAuthenticated,
    NutritionServiceFailure,
    PersistenceFailure,
    PipelineError,
    RecognitionFailure,
    StorageFailure,
    UnsupportedImageType,
)
from meal_tracker.domain.meals import MealRecord, NewMealRecord
from meal_tracker.services.images import (
    ImageStore,
    build_image_path,
    referenced_paths,
    user_meal_prefix,
)
from meal_tracker.services.nutrition import NutritionComputer
from meal_tracker.services.recognition import FoodRecognizer
from meal_tracker.services.records import MealRecordRepository

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class MealLoggingPipeline:
    """Runs recognize, compute nutrition, store image and persist in order.

    Stages never overlap and are never retried here. A failure aborts the run
    and is raised as the stage's own error type with the underlying message.
    If persisting fails after the image was uploaded, the upload is removed
    unless a stored record already references it. When that check or the
    removal fails the image is left for OrphanSweeper.
    """

    recognizer: FoodRecognizer
    nutrition_computer: NutritionComputer
    image_store: ImageStore
    repository: MealRecordRepository

    async def log_meal(
        self,
        image: bytes,
        mime_type: str,
        user_id: str | None,
        filename: str | None = None,
    ) -> MealRecord:
        """Turn a meal photo into a persisted meal record."""
        owner = _require_user(user_id)
        _require_image(image, mime_type)

        food_items = await self._recognize(image, mime_type)
        nutrition = await _run_stage(
            NutritionServiceFailure,
            lambda: self.nutrition_computer.compute(food_items),
        )

        path = build_image_path(owner, datetime.now(tz=UTC), filename)
        image_url = await _run_stage(
            StorageFailure,
            lambda: asyncio.to_thread(
                self.image_store.upload, path, image, mime_type
            ),
        )
        _logger.info("Stored meal image for user %s at %s", owner, path)

        record = await self._persist(
            owner, path, NewMealRecord(image_url, food_items, nutrition)
        )
        _logger.info(
            "Logged meal %s for user %s (%s items, %s kcal)",
            record.id,
            owner,
            len(record.food_items),
            record.nutrition.calories,
        )
        return record

    async def _recognize(self, image: bytes, mime_type: str) -> list[str]:
        food_items = await _run_stage(
            RecognitionFailure,
            lambda: self.recognizer.recognize(image, mime_type),
        )
        if not food_items:
            raise NoFoodDetected()
        return list(food_items)

    async def _persist(
        self, user_id: str, path: str, new_record: NewMealRecord
    ) -> MealRecord:
        try:
            return await _run_stage(
                PersistenceFailure,
                lambda: asyncio.to_thread(
                    self.repository.append, user_id, new_record
                ),
            )
        except PersistenceFailure:
            await self._discard_image(user_id, path)
            raise

    async def _discard_image(self, user_id: str, path: str) -> None:
        # The insert may have committed before the failure was reported.
        try:
            urls = await asyncio.to_thread(self.repository.list_image_urls, user_id)
        except Exception:
            _logger.exception("Could not check references to meal image %s", path)
            return
        if path in referenced_paths(urls, user_meal_prefix(user_id)):
            _logger.warning("Keeping meal image %s referenced by a saved record", path)
            return
        try:
            await asyncio.to_thread(self.image_store.delete, path)
        except Exception:
            _logger.exception("Failed to remove unreferenced meal image %s", path)
        else:
            _logger.info("Removed meal image %s after failed save", path)


async def _run_stage(
    error_type: type[PipelineError], func: Callable[[], Awaitable[T]]
) -> T:
    """Await one stage and report any failure as error_type."""
    try:
        return await func()
    except PipelineError:
        raise
    except Exception as exc:
        _logger.warning("Meal logging stage %s failed: %s", error_type.stage, exc)
        raise error_type(str(exc) or type(exc).__name__) from exc


def _require_user(user_id: str | None) -> str:
    if user_id is None or not user_id.strip():
        raise NotAuthenticated()
    return user_id


def _require_image(image: bytes, mime_type: str) -> None:
    if not mime_type or not mime_type.lower().startswith("image/"):
        raise UnsupportedImageType("Please select a valid image file.")
    if not image:
        raise UnsupportedImageType("The uploaded image is empty.")


@dataclass
class SingleFlightGuard:
    """Allows at most one outstanding meal logging run per user."""

    _active: set[str] = field(default_factory=set)

    @contextmanager
    def claim(self, user_id: str) -> Iterator[None]:
        """Hold the user's slot for the duration of the block."""
        if user_id in self._active:
            raise MealLoggingInProgress()
        self._active.add(user_id)
        try:
            yield
        finally:
            self._active.discard(user_id)

    def is_active(self, user_id: str) -> bool:
        """Return True while a run for the user is outstanding."""
        return user_id in self._active


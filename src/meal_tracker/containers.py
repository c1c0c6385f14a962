"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import timedelta

from supabase import create_client

from meal_tracker.adapters.openai_structured_client import OpenAIStructuredClient
from meal_tracker.adapters.supabase_image_store import SupabaseImageStore
from meal_tracker.adapters.supabase_meal_record_repository import (
    SupabaseMealRecordRepository,
)
from meal_tracker.adapters.supabase_workout_plan_repository import (
    SupabaseWorkoutPlanRepository,
)
from meal_tracker.config import Settings
from meal_tracker.services.images import OrphanSweeper
from meal_tracker.services.nutrition import LlmNutritionComputer
from meal_tracker.services.pipeline import MealLoggingPipeline, SingleFlightGuard
from meal_tracker.services.recognition import LlmFoodRecognizer
from meal_tracker.services.stats import StatsService
from meal_tracker.services.workouts import WorkoutPlanService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    pipeline: MealLoggingPipeline
    stats_service: StatsService
    workout_plan_service: WorkoutPlanService
    orphan_sweeper: OrphanSweeper
    close_resources: Callable[[], Awaitable[None]]
    single_flight: SingleFlightGuard = field(default_factory=SingleFlightGuard)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    meal_repository = SupabaseMealRecordRepository(supabase_client)
    image_store = SupabaseImageStore(
        client=supabase_client, bucket=resolved_settings.supabase_image_bucket
    )
    workout_repository = SupabaseWorkoutPlanRepository(supabase_client)
    openai_client = OpenAIStructuredClient.create(
        resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.openai_timeout_seconds,
    )
    recognizer = LlmFoodRecognizer(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        retry_attempts=resolved_settings.ai_retry_attempts,
    )
    nutrition_computer = LlmNutritionComputer(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        retry_attempts=resolved_settings.ai_retry_attempts,
    )
    pipeline = MealLoggingPipeline(
        recognizer=recognizer,
        nutrition_computer=nutrition_computer,
        image_store=image_store,
        repository=meal_repository,
    )
    orphan_sweeper = OrphanSweeper(
        image_store=image_store,
        repository=meal_repository,
        grace_period=timedelta(seconds=resolved_settings.orphan_grace_seconds),
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        pipeline=pipeline,
        stats_service=StatsService(meal_repository),
        workout_plan_service=WorkoutPlanService(workout_repository),
        orphan_sweeper=orphan_sweeper,
        close_resources=close_resources,
    )

"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import Depends, FastAPI, File, Header, Request, UploadFile, status
from fastapi.responses import JSONResponse

from meal_tracker.api.admin import router as admin_router
from meal_tracker.api.schemas import WorkoutPlanCreate
from meal_tracker.app_logging import configure_logging
from meal_tracker.containers import AppContainer
from meal_tracker.domain.errors import (
    InvalidTimezone,
    LoadFailure,
    MealLoggingInProgress,
    MealTrackerError,
    NoFoodDetected,
    NotAuthenticated,
    NutritionServiceFailure,
    PersistenceFailure,
    RecognitionFailure,
    ServiceFailure,
    StorageFailure,
    UnsupportedImageType,
)

_STATUS_BY_ERROR: dict[type[MealTrackerError], int] = {
    NotAuthenticated: status.HTTP_401_UNAUTHORIZED,
    UnsupportedImageType: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    NoFoodDetected: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidTimezone: status.HTTP_422_UNPROCESSABLE_ENTITY,
    MealLoggingInProgress: status.HTTP_409_CONFLICT,
    RecognitionFailure: status.HTTP_502_BAD_GATEWAY,
    NutritionServiceFailure: status.HTTP_502_BAD_GATEWAY,
    ServiceFailure: status.HTTP_502_BAD_GATEWAY,
    StorageFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
    PersistenceFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
    LoadFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def require_user(x_user_id: str | None = Header(default=None)) -> str:
    """Return the caller's opaque user id forwarded by the auth proxy."""
    if not x_user_id or not x_user_id.strip():
        raise NotAuthenticated()
    return x_user_id.strip()


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(MealTrackerError)
    async def meal_tracker_error(
        request: Request, exc: MealTrackerError
    ) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning(
                "%s %s failed: %s: %s",
                request.method,
                request.url.path,
                exc.code,
                exc.message,
            )
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.code, "stage": exc.stage, "message": exc.message},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/meals", status_code=status.HTTP_201_CREATED)
    async def log_meal(
        request: Request,
        image: UploadFile = File(...),
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Log a meal from an uploaded photo."""
        state_container: AppContainer = request.app.state.container
        with state_container.single_flight.claim(user_id):
            data = await image.read()
            record = await state_container.pipeline.log_meal(
                data,
                image.content_type or "",
                user_id,
                filename=image.filename,
            )
        return {"meal": record}

    @app.get("/meals/today")
    def today(
        request: Request,
        tz: str | None = None,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Return today's meals and totals in the caller's time zone."""
        state_container: AppContainer = request.app.state.container
        timezone_name = tz or state_container.settings.default_timezone
        summary = state_container.stats_service.get_today(user_id, timezone_name)
        return {
            "day": summary.day.isoformat(),
            "timezone": summary.timezone,
            "totals": summary.totals,
            "meals": summary.meals,
        }

    @app.get("/meals")
    def list_meals(
        request: Request,
        start: datetime,
        end: datetime,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Return meals logged within [start, end)."""
        state_container: AppContainer = request.app.state.container
        meals = state_container.stats_service.list_window(
            user_id, _as_utc(start), _as_utc(end)
        )
        return {"meals": meals}

    @app.post("/workout-plans", status_code=status.HTTP_201_CREATED)
    def save_workout_plan(
        body: WorkoutPlanCreate,
        request: Request,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Save a generated workout plan."""
        state_container: AppContainer = request.app.state.container
        plan = state_container.workout_plan_service.save_plan(
            user_id, body.plan, body.based_on_equipment
        )
        return {"workout_plan": plan}

    @app.get("/workout-plans")
    def list_workout_plans(
        request: Request,
        limit: int = 10,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Return the caller's most recent workout plans."""
        state_container: AppContainer = request.app.state.container
        plans = state_container.workout_plan_service.list_recent(user_id, limit)
        return {"workout_plans": plans}

    return app


def _status_for(exc: MealTrackerError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)

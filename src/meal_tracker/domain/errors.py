"""Errors surfaced by the meal tracker."""


class MealTrackerError(Exception):
    """Base class for errors reported to API callers."""

    code = "meal_tracker_error"
    stage: str | None = None

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ServiceFailure(MealTrackerError):
    """An external AI service timed out, errored or returned garbage."""

    code = "service_failure"


class PipelineError(MealTrackerError):
    """Failure of a single meal logging stage."""


class RecognitionFailure(PipelineError):
    code = "recognition_failure"
    stage = "recognize"


class NoFoodDetected(PipelineError):
    code = "no_food_detected"
    stage = "recognize"

    def __init__(
        self, message: str = "Could not identify any food in the image."
    ) -> None:
        super().__init__(message)


class NutritionServiceFailure(PipelineError):
    code = "nutrition_service_failure"
    stage = "compute_nutrition"


class StorageFailure(PipelineError):
    code = "storage_failure"
    stage = "store_image"


class PersistenceFailure(PipelineError):
    code = "persistence_failure"
    stage = "persist_record"


class LoadFailure(MealTrackerError):
    """Reading persisted records failed."""

    code = "load_failure"


class NotAuthenticated(MealTrackerError):
    code = "not_authenticated"

    def __init__(self, message: str = "Sign in to log meals.") -> None:
        super().__init__(message)


class UnsupportedImageType(MealTrackerError):
    code = "unsupported_image_type"


class InvalidTimezone(MealTrackerError):
    code = "invalid_timezone"


class MealLoggingInProgress(MealTrackerError):
    code = "meal_logging_in_progress"

    def __init__(
        self, message: str = "A meal is already being logged. Please wait."
    ) -> None:
        super().__init__(message)

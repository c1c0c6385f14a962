"""Food recognition from meal photos."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from meal_tracker.domain.errors import ServiceFailure
from meal_tracker.domain.vision import RecognizedFoods
from meal_tracker.services.retry import call_with_retry

RECOGNITION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {"type": "string"},
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

RECOGNITION_PROMPT = (
    "Identify the food items in this image. "
    "Return a short, specific label for each distinct item, "
    "for example 'grilled chicken' or 'white rice'. "
    "If the image contains no food, return an empty list."
)

_logger = logging.getLogger(__name__)


class StructuredOutputClient(Protocol):
    """Interface for LLM calls that return JSON matching a schema."""

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Return the parsed JSON response; raise ServiceFailure on error."""


class FoodRecognizer(Protocol):
    """Maps a meal photo to the food labels visible on it."""

    async def recognize(self, image: bytes, mime_type: str) -> list[str]:
        """Return food labels in the order the service reported them."""


@dataclass
class LlmFoodRecognizer(FoodRecognizer):
    """Food recognizer backed by a vision-capable LLM."""

    client: StructuredOutputClient
    model: str
    reasoning_effort: str | None
    store: bool
    retry_attempts: int = 0

    async def recognize(self, image: bytes, mime_type: str) -> list[str]:
        """Send the image to the model and return cleaned labels."""
        data_url = _to_data_url(image, mime_type)
        raw = await call_with_retry(
            lambda: self.client.complete(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=RECOGNITION_PROMPT,
                schema_name="food_recognition",
                schema=RECOGNITION_SCHEMA,
                image_data_url=data_url,
            ),
            action="recognize",
            attempts=self.retry_attempts,
        )
        try:
            result = RecognizedFoods.model_validate(raw)
        except ValidationError as exc:
            raise ServiceFailure(f"Malformed recognition response: {exc}") from exc
        labels = [label.strip() for label in result.items if label.strip()]
        _logger.info("Recognized %s food items", len(labels))
        return labels


def _to_data_url(image: bytes, mime_type: str) -> str:
    """Convert bytes to a base64 data URL for image input."""
    encoded = base64.b64encode(image).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"

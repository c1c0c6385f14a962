"""Models for food recognition results."""

from pydantic import BaseModel


class RecognizedFoods(BaseModel):
    """Structured output of the recognition model."""

    items: list[str]

"""Domain models for stored meal images."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StoredBlob:
    """An object in the image bucket."""

    path: str
    created_at: datetime | None

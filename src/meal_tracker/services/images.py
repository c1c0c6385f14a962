"""Meal image storage and orphan cleanup."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import uuid4

from meal_tracker.domain.images import StoredBlob
from meal_tracker.services.records import MealRecordRepository

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_FILENAME_LENGTH = 80

_logger = logging.getLogger(__name__)


class ImageStore(Protocol):
    """Durable blob storage for meal photos.

    Every method raises StorageFailure on error.
    """

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store bytes at path and return a dereferenceable URL."""

    def delete(self, path: str) -> None:
        """Remove the blob at path."""

    def list_blobs(self, prefix: str) -> list[StoredBlob]:
        """Return blobs stored directly under prefix."""

    def url_for(self, path: str) -> str:
        """Return the URL that upload would return for path."""


def user_meal_prefix(user_id: str) -> str:
    """Return the storage folder holding a user's meal photos."""
    return f"users/{user_id}/meals"


def build_image_path(
    user_id: str, submitted_at: datetime, filename: str | None = None
) -> str:
    """Build a per-user path that stays unique across concurrent uploads."""
    millis = int(submitted_at.timestamp() * 1000)
    token = uuid4().hex[:8]
    name = _safe_filename(filename)
    return f"{user_meal_prefix(user_id)}/{millis}-{token}-{name}"


def _safe_filename(filename: str | None) -> str:
    if not filename:
        return "meal"
    base = filename.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned[-_MAX_FILENAME_LENGTH:] or "meal"


def referenced_paths(urls: Iterable[str], prefix: str) -> set[str]:
    """Return the storage paths under prefix that the given URLs point at.

    Matching on the path keeps references valid when the public host changes.
    """
    paths: set[str] = set()
    for url in urls:
        start = url.find(f"{prefix}/")
        if start == -1:
            continue
        paths.add(url[start:].split("?", 1)[0])
    return paths


@dataclass
class OrphanSweeper:
    """Deletes uploaded photos that no meal record references."""

    image_store: ImageStore
    repository: MealRecordRepository
    grace_period: timedelta = timedelta(hours=1)

    def sweep(self, user_id: str, now: datetime | None = None) -> list[str]:
        """Delete unreferenced blobs older than the grace period."""
        cutoff = (now or datetime.now(tz=UTC)) - self.grace_period
        prefix = user_meal_prefix(user_id)
        referenced = referenced_paths(self.repository.list_image_urls(user_id), prefix)
        deleted: list[str] = []
        for blob in self.image_store.list_blobs(prefix):
            # Blobs without a timestamp may belong to a run still in flight.
            if blob.created_at is None or blob.created_at > cutoff:
                continue
            if blob.path in referenced:
                continue
            self.image_store.delete(blob.path)
            deleted.append(blob.path)
        if deleted:
            _logger.info(
                "Removed %s orphaned images for user %s", len(deleted), user_id
            )
        return deleted

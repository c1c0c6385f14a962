"""Supabase Storage bucket for meal images."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from meal_tracker.domain.errors import StorageFailure
from meal_tracker.domain.images import StoredBlob
from meal_tracker.services.images import ImageStore

_LIST_PAGE_SIZE = 1000


@dataclass
class SupabaseImageStore(ImageStore):
    """Supabase Storage implementation for meal photos."""

    client: Client
    bucket: str

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload bytes without overwriting and return the public URL."""
        try:
            self.client.storage.from_(self.bucket).upload(
                path=path,
                file=data,
                file_options={"content-type": content_type, "upsert": "false"},
            )
        except Exception as exc:
            raise StorageFailure(f"Failed to upload meal image: {exc}") from exc
        return self.url_for(path)

    def delete(self, path: str) -> None:
        """Delete a stored image."""
        try:
            self.client.storage.from_(self.bucket).remove([path])
        except Exception as exc:
            raise StorageFailure(f"Failed to delete meal image: {exc}") from exc

    def list_blobs(self, prefix: str) -> list[StoredBlob]:
        """List images stored under a folder."""
        blobs: list[StoredBlob] = []
        offset = 0
        while True:
            try:
                entries = self.client.storage.from_(self.bucket).list(
                    prefix, {"limit": _LIST_PAGE_SIZE, "offset": offset}
                )
            except Exception as exc:
                raise StorageFailure(f"Failed to list meal images: {exc}") from exc
            for entry in entries or []:
                # Folders come back without an id.
                if not entry.get("id"):
                    continue
                blobs.append(
                    StoredBlob(
                        path=f"{prefix}/{entry['name']}",
                        created_at=_parse_timestamp(entry.get("created_at")),
                    )
                )
            if not entries or len(entries) < _LIST_PAGE_SIZE:
                return blobs
            offset += _LIST_PAGE_SIZE

    def url_for(self, path: str) -> str:
        """Return the public URL of a stored image."""
        return self.client.storage.from_(self.bucket).get_public_url(path)


def _parse_timestamp(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None

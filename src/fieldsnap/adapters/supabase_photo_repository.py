"""Supabase-backed photo repository."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from fieldsnap.domain.photos import (
    Coordinates,
    ImageReference,
    PhotoQuery,
    PhotoRecord,
)
from fieldsnap.services.upload import PhotoRepository

logger = logging.getLogger(__name__)

_COLUMNS = "id, imageUrl, imageBase64, coordinates, timestamp"


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for photo record persistence."""

    client: Client
    table: str = "photos"

    async def create_photo(
        self, image: ImageReference, coordinates: Coordinates | None
    ) -> PhotoRecord:
        """Insert a photo row and return it with its server-assigned fields."""
        payload: dict[str, object] = {
            "coordinates": (
                {"lat": coordinates.lat, "lon": coordinates.lon}
                if coordinates
                else None
            ),
        }
        if image.remote_url is not None:
            payload["imageUrl"] = image.remote_url
        else:
            payload["imageBase64"] = image.inline_payload

        def insert_sync() -> list[dict[str, object]]:
            return self.client.table(self.table).insert(payload).execute().data

        data = await asyncio.to_thread(insert_sync)
        if not data:
            raise RuntimeError("Failed to create photo record")
        return _to_record(data[0])

    async def list_photos(self, query: PhotoQuery) -> list[PhotoRecord]:
        """Return every photo row matching a surface query."""

        def select_sync() -> list[dict[str, object]]:
            request = self.client.table(self.table).select(_COLUMNS)
            if query.since is not None:
                request = request.gte("timestamp", query.since.isoformat())
            if query.newest_first:
                request = request.order("timestamp", desc=True)
            return request.execute().data or []

        rows = await asyncio.to_thread(select_sync)
        records = []
        for row in rows:
            try:
                records.append(_to_record(row))
            except ValueError as exc:
                logger.warning("Skipping photo row %s: %s", row.get("id"), exc)
        return records

    async def replace_image(self, photo_id: str, image: ImageReference) -> None:
        """Swap a row's image representation, clearing the other one."""
        payload = {"imageUrl": image.remote_url, "imageBase64": image.inline_payload}

        def update_sync() -> None:
            self.client.table(self.table).update(payload).eq("id", photo_id).execute()

        await asyncio.to_thread(update_sync)


def _to_record(row: dict[str, object]) -> PhotoRecord:
    coordinates = row.get("coordinates")
    timestamp = row.get("timestamp")
    return PhotoRecord(
        id=str(row["id"]),
        image=ImageReference(
            remote_url=row.get("imageUrl"),
            inline_payload=row.get("imageBase64"),
        ),
        coordinates=(
            Coordinates(lat=float(coordinates["lat"]), lon=float(coordinates["lon"]))
            if isinstance(coordinates, dict)
            else None
        ),
        created_at=(
            datetime.fromisoformat(timestamp) if isinstance(timestamp, str) else None
        ),
    )

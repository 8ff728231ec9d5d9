"""Live snapshot subscriptions feeding the gallery and map surfaces."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from fieldsnap.domain.photos import GalleryItem, MapMarker, PhotoQuery, PhotoRecord

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[PhotoRecord]], None]


class Subscription(Protocol):
    """Handle to an open snapshot subscription."""

    async def close(self) -> None:
        """Stop deliveries and release the listener."""


class PhotoFeed(Protocol):
    """Interface for live snapshot subscriptions on the photo collection."""

    async def subscribe(
        self, query: PhotoQuery, on_snapshot: SnapshotCallback
    ) -> Subscription:
        """Deliver the full matching snapshot now and on every change."""


@dataclass
class SyncConsumer:
    """Keeps one display surface in sync with the remote collection."""

    feed: PhotoFeed
    query: PhotoQuery
    render: SnapshotCallback
    _records: list[PhotoRecord] = field(default_factory=list, init=False)
    _subscription: Subscription | None = field(default=None, init=False)
    _generation: int = field(default=0, init=False)

    @property
    def records(self) -> list[PhotoRecord]:
        """Return the last delivered snapshot."""
        return list(self._records)

    @property
    def is_open(self) -> bool:
        return self._subscription is not None

    async def open(self) -> None:
        """Subscribe once; opening an open consumer does nothing."""
        if self._subscription is not None:
            return
        self._generation += 1
        generation = self._generation

        def deliver(snapshot: list[PhotoRecord]) -> None:
            if generation != self._generation:
                logger.debug("Dropping snapshot for a closed subscription")
                return
            self._records = list(snapshot)
            self.render(self.records)

        self._subscription = await self.feed.subscribe(self.query, deliver)

    async def close(self) -> None:
        """Unsubscribe exactly once; closing a closed consumer does nothing."""
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        self._generation += 1
        await subscription.close()

    async def __aenter__(self) -> "SyncConsumer":
        await self.open()
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()


def gallery_query() -> PhotoQuery:
    """Query for the chronological list, newest first."""
    return PhotoQuery(newest_first=True)


def map_query(recency_hours: int | None = None) -> PhotoQuery:
    """Query for the map, optionally limited to recent records."""
    if recency_hours is None:
        return PhotoQuery()
    return PhotoQuery(since=datetime.now(tz=UTC) - timedelta(hours=recency_hours))


def render_gallery(records: list[PhotoRecord]) -> list[GalleryItem]:
    """Build list rows for a snapshot."""
    items = []
    for record in records:
        coordinates = record.coordinates
        items.append(
            GalleryItem(
                id=record.id,
                image_source=record.image.source,
                coordinates_text=(
                    f"Lat: {coordinates.lat}, Lon: {coordinates.lon}"
                    if coordinates
                    else None
                ),
                timestamp_label=_timestamp_label(record, "Unknown time"),
                maps_url=(
                    f"https://maps.google.com/?q={coordinates.lat},{coordinates.lon}"
                    if coordinates
                    else None
                ),
            )
        )
    return items


def render_map(records: list[PhotoRecord]) -> list[MapMarker]:
    """Build markers for the records that carry coordinates."""
    return [
        MapMarker(
            id=record.id,
            lat=record.coordinates.lat,
            lon=record.coordinates.lon,
            title=_timestamp_label(record, "Uploaded Image"),
            image_source=record.image.source,
        )
        for record in records
        if record.coordinates is not None
    ]


def _timestamp_label(record: PhotoRecord, fallback: str) -> str:
    if record.created_at is None:
        return fallback
    return record.created_at.strftime("%Y-%m-%d %H:%M:%S")

"""Supabase Realtime snapshot feed for the photo collection."""

import asyncio
import logging
from dataclasses import dataclass, field
from uuid import uuid4

from supabase import AsyncClient, acreate_client

from fieldsnap.domain.photos import PhotoQuery
from fieldsnap.services.sync import PhotoFeed, SnapshotCallback, Subscription
from fieldsnap.services.upload import PhotoRepository

logger = logging.getLogger(__name__)


@dataclass
class _ChannelSubscription(Subscription):
    feed: "SupabaseRealtimeFeed"
    channel: object
    query: PhotoQuery
    on_snapshot: SnapshotCallback
    closed: bool = False
    _pending: set[asyncio.Task[None]] = field(default_factory=set)
    _issued: int = 0
    _delivered: int = 0

    def on_change(self, _payload: dict[str, object]) -> None:
        if self.closed:
            return
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._pending.add(task)
        task.add_done_callback(self._refresh_done)

    async def refresh(self) -> None:
        self._issued += 1
        sequence = self._issued
        records = await self.feed.repository.list_photos(self.query)
        if self.closed:
            return
        # Reads can finish out of order; only a newer read may replace the view.
        if sequence < self._delivered:
            logger.debug("Dropping stale snapshot %d on %s", sequence, self.feed.table)
            return
        self._delivered = sequence
        self.on_snapshot(records)

    def _refresh_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Snapshot refresh failed on %s", self.feed.table, exc_info=exc
            )

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        for task in list(self._pending):
            task.cancel()
        client = await self.feed.realtime_client()
        await client.remove_channel(self.channel)
        logger.info("Closed realtime subscription on %s", self.feed.table)


@dataclass
class SupabaseRealtimeFeed(PhotoFeed):
    """Re-reads the full snapshot on every change to the photos table."""

    supabase_url: str
    supabase_key: str
    repository: PhotoRepository
    table: str = "photos"
    client: AsyncClient | None = None

    async def realtime_client(self) -> AsyncClient:
        """Return the async client, creating it on first use."""
        if self.client is None:
            self.client = await acreate_client(self.supabase_url, self.supabase_key)
        return self.client

    async def subscribe(
        self, query: PhotoQuery, on_snapshot: SnapshotCallback
    ) -> Subscription:
        """Open a channel and deliver the initial snapshot."""
        client = await self.realtime_client()
        channel = client.channel(f"{self.table}-{uuid4().hex[:8]}")
        subscription = _ChannelSubscription(
            feed=self, channel=channel, query=query, on_snapshot=on_snapshot
        )
        channel.on_postgres_changes(
            "*", schema="public", table=self.table, callback=subscription.on_change
        )
        await channel.subscribe()
        logger.info("Opened realtime subscription on %s", self.table)
        try:
            await subscription.refresh()
        except Exception:
            await subscription.close()
            raise
        return subscription

    async def close(self) -> None:
        """Drop every realtime channel held by the client."""
        if self.client is not None:
            await self.client.remove_all_channels()

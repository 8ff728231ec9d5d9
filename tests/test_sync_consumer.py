"""Tests for snapshot subscriptions and surface rendering."""

import asyncio
from datetime import UTC, datetime, timedelta

from fieldsnap.domain.photos import (
    Coordinates,
    ImageReference,
    PhotoQuery,
    PhotoRecord,
)
from fieldsnap.services.sync import (
    SyncConsumer,
    gallery_query,
    map_query,
    render_gallery,
    render_map,
)
from tests.conftest import InMemoryPhotoStore


def make_record(
    record_id: str,
    coordinates: Coordinates | None = None,
    created_at: datetime | None = None,
) -> PhotoRecord:
    return PhotoRecord(
        id=record_id,
        image=ImageReference(remote_url=f"https://storage.test/{record_id}.jpg"),
        coordinates=coordinates,
        created_at=created_at,
    )


def test_repeated_open_close_leaves_no_listener(store: InMemoryPhotoStore) -> None:
    async def scenario() -> None:
        for _ in range(5):
            consumer = SyncConsumer(
                feed=store, query=gallery_query(), render=lambda _records: None
            )
            await consumer.open()
            await consumer.open()
            assert len(store.listeners) == 1
            await consumer.close()
            await consumer.close()

    asyncio.run(scenario())

    assert store.listeners == {}
    assert store.subscribe_calls == store.close_calls == 5


def test_snapshots_replace_the_previous_set(store: InMemoryPhotoStore) -> None:
    rendered: list[list[str]] = []

    async def scenario() -> SyncConsumer:
        consumer = SyncConsumer(
            feed=store,
            query=PhotoQuery(),
            render=lambda records: rendered.append([r.id for r in records]),
        )
        async with consumer:
            await store.create_photo(
                ImageReference(remote_url="https://storage.test/1.jpg"), None
            )
            await store.create_photo(
                ImageReference(remote_url="https://storage.test/2.jpg"), None
            )
            assert consumer.is_open
        return consumer

    consumer = asyncio.run(scenario())

    assert [len(ids) for ids in rendered] == [0, 1, 2]
    assert rendered[2][0] == rendered[1][0]
    assert len(consumer.records) == 2
    assert not consumer.is_open


def test_no_delivery_after_close(store: InMemoryPhotoStore) -> None:
    rendered: list[int] = []

    async def scenario() -> None:
        consumer = SyncConsumer(
            feed=store,
            query=PhotoQuery(),
            render=lambda records: rendered.append(len(records)),
        )
        await consumer.open()
        [(_, callback)] = store.listeners.values()
        await consumer.close()
        callback([make_record("late")])
        await store.create_photo(
            ImageReference(remote_url="https://storage.test/1.jpg"), None
        )

    asyncio.run(scenario())

    assert rendered == [0]


def test_gallery_lists_newest_first(store: InMemoryPhotoStore) -> None:
    async def scenario() -> list[PhotoRecord]:
        for index in range(3):
            await store.create_photo(
                ImageReference(remote_url=f"https://storage.test/{index}.jpg"),
                None,
            )
        return await store.list_photos(gallery_query())

    records = asyncio.run(scenario())

    assert [record.image.remote_url for record in records] == [
        "https://storage.test/2.jpg",
        "https://storage.test/1.jpg",
        "https://storage.test/0.jpg",
    ]


def test_render_gallery_formats_rows() -> None:
    tagged = make_record(
        "a",
        Coordinates(lat=12.9, lon=77.6),
        datetime(2024, 5, 1, 9, 30, 5, tzinfo=UTC),
    )
    untagged = make_record("b")

    first, second = render_gallery([tagged, untagged])

    assert first.coordinates_text == "Lat: 12.9, Lon: 77.6"
    assert first.timestamp_label == "2024-05-01 09:30:05"
    assert first.maps_url == "https://maps.google.com/?q=12.9,77.6"
    assert first.image_source == "https://storage.test/a.jpg"
    assert second.coordinates_text is None
    assert second.maps_url is None
    assert second.timestamp_label == "Unknown time"


def test_render_map_skips_records_without_coordinates() -> None:
    records = [
        make_record("a", Coordinates(lat=1.0, lon=2.0)),
        make_record("b"),
        make_record(
            "c",
            Coordinates(lat=3.0, lon=4.0),
            datetime(2024, 5, 1, 9, 30, tzinfo=UTC),
        ),
    ]

    markers = render_map(records)

    assert [marker.id for marker in markers] == ["a", "c"]
    assert markers[0].title == "Uploaded Image"
    assert markers[1].title == "2024-05-01 09:30:00"
    assert (markers[1].lat, markers[1].lon) == (3.0, 4.0)


def test_inline_images_render_as_data_uris() -> None:
    record = PhotoRecord(
        id="x",
        image=ImageReference(inline_payload="QUJD"),
        coordinates=None,
        created_at=None,
    )

    [item] = render_gallery([record])

    assert item.image_source == "data:image/jpeg;base64,QUJD"


def test_map_query_limits_recency() -> None:
    before = datetime.now(tz=UTC)

    unbounded = map_query()
    recent = map_query(24)

    assert unbounded == PhotoQuery()
    assert recent.since is not None
    assert not recent.newest_first
    assert before - timedelta(hours=24, seconds=5) < recent.since
    assert recent.since <= datetime.now(tz=UTC) - timedelta(hours=24)


def test_recent_map_subscription_excludes_old_records(
    store: InMemoryPhotoStore,
) -> None:
    store.records = [
        make_record("old", Coordinates(1.0, 1.0), datetime(2020, 1, 1, tzinfo=UTC)),
        make_record("new", Coordinates(2.0, 2.0), datetime.now(tz=UTC)),
    ]
    rendered: list[list[str]] = []

    async def scenario() -> None:
        async with SyncConsumer(
            feed=store,
            query=map_query(24),
            render=lambda records: rendered.append(
                [marker.id for marker in render_map(records)]
            ),
        ):
            pass

    asyncio.run(scenario())

    assert rendered == [["new"]]

"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

import pytest
from PIL import Image

from fieldsnap.adapters.pillow_image_compressor import PillowImageCompressor
from fieldsnap.config import Settings
from fieldsnap.containers import AppContainer
from fieldsnap.domain.capture import CaptureRequest, CaptureResult, CaptureSucceeded
from fieldsnap.domain.location import (
    FixOptions,
    FixResult,
    FixSucceeded,
    PositionReading,
)
from fieldsnap.domain.photos import (
    Coordinates,
    ImageReference,
    PhotoQuery,
    PhotoRecord,
)
from fieldsnap.platforms import PlatformProfile, select_profile
from fieldsnap.services.capture import CameraDevice, CaptureController
from fieldsnap.services.location import GeolocationBackend, LocationProvider
from fieldsnap.services.migration import RepresentationMigrator
from fieldsnap.services.permissions import (
    Notifier,
    PermissionGate,
    PermissionPlatform,
)
from fieldsnap.services.sync import PhotoFeed, SnapshotCallback, Subscription
from fieldsnap.services.upload import (
    ObjectStorage,
    PhotoRepository,
    RemoteUrlEncoder,
    UploadPipeline,
)

TEST_SUPABASE_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
    "c2lnbmF0dXJl"
)


def make_jpeg(path: Path, size: tuple[int, int] = (640, 480)) -> Path:
    """Write a small JPEG to disk and return its path."""
    Image.new("RGB", size, color=(40, 120, 200)).save(path, format="JPEG")
    return path


def reading(lat: float = 12.9, lon: float = 77.6) -> FixSucceeded:
    return FixSucceeded(
        reading=PositionReading(
            latitude=lat,
            longitude=lon,
            accuracy_meters=5.0,
            timestamp=datetime(2024, 5, 1, 9, 30, tzinfo=UTC),
        )
    )


@dataclass
class FakePermissionPlatform(PermissionPlatform):
    """Fake OS permission API answering from a lookup table."""

    results: dict[str, str] = field(default_factory=dict)
    default: str = "granted"
    checked: list[str] = field(default_factory=list)
    requested: list[str] = field(default_factory=list)
    settings_opened: int = 0

    async def check(self, permission_id: str) -> str:
        self.checked.append(permission_id)
        return self.results.get(permission_id, self.default)

    async def request(self, permission_id: str) -> str:
        self.requested.append(permission_id)
        return self.results.get(permission_id, self.default)

    async def open_settings(self) -> None:
        self.settings_opened += 1


@dataclass
class FakeNotifier(Notifier):
    """Fake dialog surface that records what the user would see."""

    accept_settings: bool = False
    alerts: list[tuple[str, str]] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)
    settings_offers: list[str] = field(default_factory=list)

    async def alert(self, title: str, message: str) -> None:
        self.alerts.append((title, message))

    async def notice(self, message: str) -> None:
        self.notices.append(message)

    async def ask_open_settings(self, title: str, message: str) -> bool:
        self.settings_offers.append(title)
        return self.accept_settings


@dataclass
class FakeGeolocationBackend(GeolocationBackend):
    """Fake geolocation API replaying queued results."""

    results: list[FixResult] = field(default_factory=list)
    calls: list[FixOptions] = field(default_factory=list)
    configure_calls: int = 0

    async def configure(
        self, *, skip_permission_requests: bool, background_updates: bool
    ) -> None:
        self.configure_calls += 1

    async def current_position(self, options: FixOptions) -> FixResult:
        self.calls.append(options)
        if self.results:
            return self.results.pop(0)
        return reading()


@dataclass
class FakeCamera(CameraDevice):
    """Fake camera returning a fixed outcome."""

    result: CaptureResult = field(
        default_factory=lambda: CaptureSucceeded(uri="file:///tmp/a.jpg")
    )
    launches: list[CaptureRequest] = field(default_factory=list)

    async def launch(self, request: CaptureRequest) -> CaptureResult:
        self.launches.append(request)
        return self.result


@dataclass
class _InMemorySubscription(Subscription):
    store: "InMemoryPhotoStore"
    token: int

    async def close(self) -> None:
        self.store.close_calls += 1
        self.store.listeners.pop(self.token, None)


@dataclass
class InMemoryPhotoStore(PhotoRepository, PhotoFeed):
    """In-memory photo collection with synchronous snapshot delivery."""

    records: list[PhotoRecord] = field(default_factory=list)
    listeners: dict[int, tuple[PhotoQuery, SnapshotCallback]] = field(
        default_factory=dict
    )
    subscribe_calls: int = 0
    close_calls: int = 0
    fail_writes: bool = False
    _next_token: int = 0
    _clock: datetime = field(
        default_factory=lambda: datetime(2024, 5, 1, 9, 0, tzinfo=UTC)
    )

    async def create_photo(
        self, image: ImageReference, coordinates: Coordinates | None
    ) -> PhotoRecord:
        if self.fail_writes:
            raise RuntimeError("store unavailable")
        self._clock += timedelta(seconds=1)
        record = PhotoRecord(
            id=str(uuid4()),
            image=image,
            coordinates=coordinates,
            created_at=self._clock,
        )
        self.records.append(record)
        self._notify()
        return record

    async def list_photos(self, query: PhotoQuery) -> list[PhotoRecord]:
        return self._select(query)

    async def replace_image(self, photo_id: str, image: ImageReference) -> None:
        self.records = [
            PhotoRecord(
                id=record.id,
                image=image,
                coordinates=record.coordinates,
                created_at=record.created_at,
            )
            if record.id == photo_id
            else record
            for record in self.records
        ]
        self._notify()

    async def subscribe(
        self, query: PhotoQuery, on_snapshot: SnapshotCallback
    ) -> Subscription:
        self.subscribe_calls += 1
        self._next_token += 1
        self.listeners[self._next_token] = (query, on_snapshot)
        on_snapshot(self._select(query))
        return _InMemorySubscription(store=self, token=self._next_token)

    def _select(self, query: PhotoQuery) -> list[PhotoRecord]:
        selected = [
            record
            for record in self.records
            if query.since is None
            or (record.created_at is not None and record.created_at >= query.since)
        ]
        if query.newest_first:
            selected.sort(key=lambda record: record.created_at, reverse=True)
        return selected

    def _notify(self) -> None:
        for query, callback in list(self.listeners.values()):
            callback(self._select(query))


@dataclass
class FakeObjectStorage(ObjectStorage):
    """Fake object storage keeping uploads in memory."""

    uploads: dict[str, bytes] = field(default_factory=dict)
    fail: bool = False

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise RuntimeError("storage unavailable")
        self.uploads[path] = data
        return f"https://storage.test/{path}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=TEST_SUPABASE_KEY,
        admin_token="admin-token",
    )


@pytest.fixture
def profile() -> PlatformProfile:
    return select_profile("android", 34)


@pytest.fixture
def permission_platform() -> FakePermissionPlatform:
    return FakePermissionPlatform()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def geolocation() -> FakeGeolocationBackend:
    return FakeGeolocationBackend()


@pytest.fixture
def camera(tmp_path: Path) -> FakeCamera:
    image_path = make_jpeg(tmp_path / "a.jpg")
    return FakeCamera(result=CaptureSucceeded(uri=f"file://{image_path}"))


@pytest.fixture
def store() -> InMemoryPhotoStore:
    return InMemoryPhotoStore()


@pytest.fixture
def object_storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture
def gate(
    permission_platform: FakePermissionPlatform,
    notifier: FakeNotifier,
    profile: PlatformProfile,
) -> PermissionGate:
    return PermissionGate(
        platform=permission_platform, notifier=notifier, profile=profile
    )


@pytest.fixture
def location_provider(
    geolocation: FakeGeolocationBackend, gate: PermissionGate
) -> LocationProvider:
    return LocationProvider(backend=geolocation, permissions=gate)


@pytest.fixture
def pipeline(
    profile: PlatformProfile,
    store: InMemoryPhotoStore,
    object_storage: FakeObjectStorage,
) -> UploadPipeline:
    return UploadPipeline(
        profile=profile,
        compressor=PillowImageCompressor(),
        encoder=RemoteUrlEncoder(object_storage),
        repository=store,
    )


@pytest.fixture
def controller(
    gate: PermissionGate,
    location_provider: LocationProvider,
    camera: FakeCamera,
    pipeline: UploadPipeline,
    notifier: FakeNotifier,
) -> CaptureController:
    return CaptureController(
        permissions=gate,
        location=location_provider,
        camera=camera,
        pipeline=pipeline,
        notifier=notifier,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    profile: PlatformProfile,
    gate: PermissionGate,
    location_provider: LocationProvider,
    controller: CaptureController,
    store: InMemoryPhotoStore,
    object_storage: FakeObjectStorage,
) -> AppContainer:
    async def close_resources() -> None:
        await location_provider.teardown()

    return AppContainer(
        settings=settings,
        profile=profile,
        permission_gate=gate,
        location_provider=location_provider,
        capture_controller=controller,
        photo_repository=store,
        photo_feed=store,
        migrator=RepresentationMigrator(
            repository=store, encoder=RemoteUrlEncoder(object_storage)
        ),
        close_resources=close_resources,
    )

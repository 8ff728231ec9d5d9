"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from fieldsnap.adapters.device_bridge_client import HttpxDeviceBridgeClient
from fieldsnap.adapters.pillow_image_compressor import PillowImageCompressor
from fieldsnap.adapters.supabase_object_storage import SupabaseObjectStorage
from fieldsnap.adapters.supabase_photo_repository import SupabasePhotoRepository
from fieldsnap.adapters.supabase_realtime_feed import SupabaseRealtimeFeed
from fieldsnap.config import Settings
from fieldsnap.platforms import PlatformProfile, select_profile
from fieldsnap.services.capture import CaptureController
from fieldsnap.services.location import LocationProvider
from fieldsnap.services.migration import RepresentationMigrator
from fieldsnap.services.permissions import PermissionGate
from fieldsnap.services.sync import PhotoFeed
from fieldsnap.services.upload import (
    ImageEncoder,
    InlineBase64Encoder,
    PhotoRepository,
    RemoteUrlEncoder,
    UploadPipeline,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    profile: PlatformProfile
    permission_gate: PermissionGate
    location_provider: LocationProvider
    capture_controller: CaptureController
    photo_repository: PhotoRepository
    photo_feed: PhotoFeed
    migrator: RepresentationMigrator
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    profile = select_profile(
        resolved_settings.platform, resolved_settings.os_major_version
    )
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    photo_repository = SupabasePhotoRepository(
        supabase_client, table=resolved_settings.photos_table
    )
    remote_url_encoder = RemoteUrlEncoder(
        SupabaseObjectStorage(supabase_client, bucket=resolved_settings.storage_bucket)
    )
    encoder: ImageEncoder
    if resolved_settings.image_strategy == "inline_base64":
        encoder = InlineBase64Encoder(max_bytes=resolved_settings.max_inline_bytes)
    else:
        encoder = remote_url_encoder
    photo_feed = SupabaseRealtimeFeed(
        supabase_url=resolved_settings.supabase_url,
        supabase_key=resolved_settings.supabase_service_key,
        repository=photo_repository,
        table=resolved_settings.photos_table,
    )

    device_bridge = HttpxDeviceBridgeClient.create(resolved_settings.device_bridge_url)
    permission_gate = PermissionGate(
        platform=device_bridge, notifier=device_bridge, profile=profile
    )
    location_provider = LocationProvider(
        backend=device_bridge,
        permissions=permission_gate,
        watch_enabled=resolved_settings.location_watch_enabled,
    )
    upload_pipeline = UploadPipeline(
        profile=profile,
        compressor=PillowImageCompressor(),
        encoder=encoder,
        repository=photo_repository,
        max_dimension=resolved_settings.image_max_dimension,
        quality=resolved_settings.image_quality,
    )
    capture_controller = CaptureController(
        permissions=permission_gate,
        location=location_provider,
        camera=device_bridge,
        pipeline=upload_pipeline,
        notifier=device_bridge,
    )
    migrator = RepresentationMigrator(
        repository=photo_repository, encoder=remote_url_encoder
    )

    async def close_resources() -> None:
        await location_provider.teardown()
        await photo_feed.close()
        await device_bridge.close()

    return AppContainer(
        settings=resolved_settings,
        profile=profile,
        permission_gate=permission_gate,
        location_provider=location_provider,
        capture_controller=capture_controller,
        photo_repository=photo_repository,
        photo_feed=photo_feed,
        migrator=migrator,
        close_resources=close_resources,
    )

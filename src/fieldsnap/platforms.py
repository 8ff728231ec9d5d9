"""Per-platform capability strategy table, selected once at startup."""

from collections.abc import Mapping
from dataclasses import dataclass

from fieldsnap.domain.permissions import Capability

ANDROID_MEDIA_PERMISSION_MIN_VERSION = 33


@dataclass(frozen=True)
class PlatformProfile:
    """Everything that differs between device operating systems."""

    name: str
    permission_ids: Mapping[Capability, str]
    status_variants: Mapping[Capability, tuple[str, ...]]
    capture_capabilities: tuple[Capability, ...]
    # Android reports "never ask again" explicitly; iOS only ever says denied.
    reports_permanent_denial: bool
    # Only iOS status checks can answer that location services are unavailable.
    reports_unavailable_status: bool
    uri_schemes: tuple[str, ...]

    def permission_id(self, capability: Capability) -> str:
        """Return the OS identifier for a capability."""
        return self.permission_ids[capability]

    def variants(self, capability: Capability) -> tuple[str, ...]:
        """Return every identifier whose status describes the capability."""
        return self.status_variants.get(
            capability, (self.permission_id(capability),)
        )

    def normalize_path(self, uri: str) -> str:
        """Strip URI scheme prefixes the filesystem does not understand."""
        for scheme in self.uri_schemes:
            if uri.startswith(scheme):
                return uri[len(scheme) :]
        return uri


def _android(os_major_version: int) -> PlatformProfile:
    if os_major_version >= ANDROID_MEDIA_PERMISSION_MIN_VERSION:
        storage = "android.permission.READ_MEDIA_IMAGES"
    else:
        storage = "android.permission.WRITE_EXTERNAL_STORAGE"
    return PlatformProfile(
        name="android",
        permission_ids={
            Capability.CAMERA: "android.permission.CAMERA",
            Capability.FINE_LOCATION: "android.permission.ACCESS_FINE_LOCATION",
            Capability.MEDIA_STORAGE: storage,
        },
        status_variants={},
        capture_capabilities=(Capability.CAMERA, Capability.MEDIA_STORAGE),
        reports_permanent_denial=True,
        reports_unavailable_status=False,
        uri_schemes=("file://",),
    )


def _ios(_os_major_version: int) -> PlatformProfile:
    return PlatformProfile(
        name="ios",
        permission_ids={
            Capability.CAMERA: "ios.permission.CAMERA",
            Capability.FINE_LOCATION: "ios.permission.LOCATION_WHEN_IN_USE",
            Capability.MEDIA_STORAGE: "ios.permission.PHOTO_LIBRARY_ADD_ONLY",
        },
        status_variants={
            Capability.FINE_LOCATION: (
                "ios.permission.LOCATION_WHEN_IN_USE",
                "ios.permission.LOCATION_ALWAYS",
            ),
        },
        capture_capabilities=(Capability.CAMERA,),
        reports_permanent_denial=False,
        reports_unavailable_status=True,
        uri_schemes=("file://",),
    )


_PROFILES = {
    "android": _android,
    "ios": _ios,
}


def select_profile(platform: str, os_major_version: int) -> PlatformProfile:
    """Return the capability strategy for a platform."""
    try:
        factory = _PROFILES[platform]
    except KeyError as exc:
        raise ValueError(f"Unsupported platform: {platform}") from exc
    return factory(os_major_version)

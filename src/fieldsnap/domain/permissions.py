"""Domain models for OS capability grants."""

from enum import StrEnum


class Capability(StrEnum):
    """OS capabilities the capture flow depends on."""

    CAMERA = "camera"
    FINE_LOCATION = "fine_location"
    MEDIA_STORAGE = "media_storage"


class PermissionState(StrEnum):
    """Classified result of a permission check or request."""

    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED = "denied"
    PERMANENTLY_DENIED = "permanently_denied"


class LocationPermissionStatus(StrEnum):
    """Read-only location permission introspection result."""

    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED = "denied"

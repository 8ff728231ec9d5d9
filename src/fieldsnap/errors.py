"""Error taxonomy for the capture-to-sync flow."""


class FieldSnapError(Exception):
    """Base class for every error raised by the application."""


class PermissionDenied(FieldSnapError):
    """A required OS capability was not granted."""

    def __init__(self, capability: str) -> None:
        self.capability = capability
        super().__init__(f"Permission not granted: {capability}")


class PermissionPermanentlyDenied(PermissionDenied):
    """The OS will no longer prompt for the capability."""


class DeviceCaptureError(FieldSnapError):
    """The device camera reported an error."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(f"{code}: {message}")


class LocationError(FieldSnapError):
    """Base class for position resolution failures."""


class LocationUnavailable(LocationError):
    """No fix could be resolved."""


class LocationTimeout(LocationUnavailable):
    """Position resolution ran out of time."""


class LocationPermissionDenied(LocationError):
    """Location access is not granted."""


class UploadError(FieldSnapError):
    """Base class for upload pipeline stage failures."""

    stage = "upload"


class FileNotFound(UploadError):
    """The captured image is no longer on disk."""

    stage = "existence"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Image file does not exist: {path}")


class CompressionFailure(UploadError):
    """The image could not be recompressed or encoded."""

    stage = "compression"


class UploadTransportFailure(UploadError):
    """The image binary could not be transferred to object storage."""

    stage = "transfer"


class PersistenceFailure(UploadError):
    """The photo record could not be written to the remote store."""

    stage = "persistence"

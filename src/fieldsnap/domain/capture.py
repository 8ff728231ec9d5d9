"""Domain models for capture sessions."""

from dataclasses import dataclass
from enum import StrEnum

from fieldsnap.domain.location import Position


class CaptureState(StrEnum):
    """States of the capture screen controller."""

    IDLE = "idle"
    AWAITING_PERMISSION = "awaiting_permission"
    AWAITING_CAPTURE = "awaiting_capture"
    AWAITING_LOCATION = "awaiting_location"
    READY_TO_UPLOAD = "ready_to_upload"
    UPLOADING = "uploading"


@dataclass
class CaptureSession:
    """Transient state spanning one capture through its upload outcome."""

    local_image_path: str
    position: Position | None = None
    uploading: bool = False


@dataclass(frozen=True)
class CaptureRequest:
    """Options passed to the device camera."""

    media_type: str = "photo"
    save_to_photos: bool = True


@dataclass(frozen=True)
class CaptureCancelled:
    pass


@dataclass(frozen=True)
class CaptureFailed:
    code: str
    message: str


@dataclass(frozen=True)
class CaptureSucceeded:
    uri: str


CaptureResult = CaptureCancelled | CaptureFailed | CaptureSucceeded

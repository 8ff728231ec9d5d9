"""Pydantic models for device bridge payloads."""

from datetime import UTC, datetime

from pydantic import BaseModel

from fieldsnap.domain.capture import (
    CaptureCancelled,
    CaptureFailed,
    CaptureResult,
    CaptureSucceeded,
)
from fieldsnap.domain.location import (
    FixFailed,
    FixResult,
    FixSucceeded,
    GeolocationErrorCode,
    PositionReading,
)


class PermissionResultPayload(BaseModel):
    """Raw result of a permission check or request."""

    result: str


class CameraLaunchPayload(BaseModel):
    """Outcome of a camera launch: cancelled, error or a file URI."""

    cancelled: bool | None = None
    error: str | None = None
    message: str | None = None
    uri: str | None = None

    def to_result(self) -> CaptureResult:
        if self.cancelled:
            return CaptureCancelled()
        if self.error is not None:
            return CaptureFailed(code=self.error, message=self.message or "")
        if self.uri:
            return CaptureSucceeded(uri=self.uri)
        return CaptureFailed(code="no_asset", message="Camera returned no image")


class PositionCoords(BaseModel):
    """Coordinates block of a position response."""

    latitude: float
    longitude: float
    accuracy: float | None = None


class GeolocationErrorPayload(BaseModel):
    """Geolocation error block."""

    code: int
    message: str = ""


class PositionPayload(BaseModel):
    """Position response: coords with a timestamp, or an error."""

    coords: PositionCoords | None = None
    timestamp: float | None = None
    error: GeolocationErrorPayload | None = None

    def to_result(self) -> FixResult:
        if self.error is not None:
            try:
                code = GeolocationErrorCode(self.error.code)
            except ValueError:
                code = GeolocationErrorCode.POSITION_UNAVAILABLE
            return FixFailed(code=code, message=self.error.message)
        if self.coords is None:
            return FixFailed(
                code=GeolocationErrorCode.POSITION_UNAVAILABLE,
                message="Position response carried no coordinates",
            )
        resolved_at = (
            datetime.fromtimestamp(self.timestamp / 1000, tz=UTC)
            if self.timestamp is not None
            else datetime.now(tz=UTC)
        )
        return FixSucceeded(
            reading=PositionReading(
                latitude=self.coords.latitude,
                longitude=self.coords.longitude,
                accuracy_meters=self.coords.accuracy,
                timestamp=resolved_at,
            )
        )


class SettingsConfirmationPayload(BaseModel):
    """User's answer to the open-settings offer."""

    confirmed: bool

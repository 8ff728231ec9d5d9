"""Capture screen controller: permissions, camera, location, upload."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from fieldsnap.domain.capture import (
    CaptureCancelled,
    CaptureFailed,
    CaptureRequest,
    CaptureResult,
    CaptureSession,
    CaptureState,
)
from fieldsnap.domain.photos import PhotoRecord
from fieldsnap.errors import (
    DeviceCaptureError,
    LocationPermissionDenied,
    UploadError,
)
from fieldsnap.services.location import LocationProvider
from fieldsnap.services.permissions import Notifier, PermissionGate
from fieldsnap.services.upload import UploadPipeline

logger = logging.getLogger(__name__)

_CAPTURE_ENTRY_STATES = {CaptureState.IDLE, CaptureState.READY_TO_UPLOAD}


class CameraDevice(Protocol):
    """Interface for the device camera."""

    async def launch(self, request: CaptureRequest) -> CaptureResult:
        """Open the camera and report how the capture ended."""


@dataclass
class CaptureController:
    """State machine owning the transient session of one capture screen."""

    permissions: PermissionGate
    location: LocationProvider
    camera: CameraDevice
    pipeline: UploadPipeline
    notifier: Notifier
    state: CaptureState = field(default=CaptureState.IDLE, init=False)
    session: CaptureSession | None = field(default=None, init=False)

    @property
    def can_capture(self) -> bool:
        """Return whether a new capture may start now."""
        return self.state in _CAPTURE_ENTRY_STATES

    async def capture(self) -> CaptureSession | None:
        """Take a photo and tag it with the current position if possible."""
        if not self.can_capture:
            logger.info("Capture ignored while %s", self.state)
            return None

        self.state = CaptureState.AWAITING_PERMISSION
        try:
            return await self._run_capture()
        finally:
            # Every exit, including bridge failures and cancellation, lands in
            # idle or ready_to_upload.
            self._settle()

    async def _run_capture(self) -> CaptureSession | None:
        await self.permissions.ensure_granted(
            self.permissions.profile.capture_capabilities
        )

        self.state = CaptureState.AWAITING_CAPTURE
        result = await self.camera.launch(CaptureRequest())
        if isinstance(result, CaptureCancelled):
            logger.info("Camera cancelled")
            return None
        if isinstance(result, CaptureFailed):
            await self.notifier.alert("Camera Error", result.message or "Unknown error")
            raise DeviceCaptureError(result.code, result.message)

        if self.session is not None:
            logger.info("Replacing unsent capture %s", self.session.local_image_path)
        session = CaptureSession(local_image_path=result.uri)
        self.session = session
        self.state = CaptureState.AWAITING_LOCATION
        try:
            session.position = await self.location.get_current_position()
        except LocationPermissionDenied as exc:
            logger.warning("Continuing without location: %s", exc)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Continuing without location: %s", exc)
            await self._soft_notice(
                "Location not available; the photo will be saved without it."
            )
        return session

    async def upload(self) -> PhotoRecord | None:
        """Persist the current session; re-entrant triggers are ignored."""
        session = self.session
        if session is None:
            await self.notifier.alert("Missing Data", "Image not available.")
            return None
        if session.uploading:
            logger.info("Upload already in progress")
            return None

        session.uploading = True
        self.state = CaptureState.UPLOADING
        try:
            record = await self.pipeline.run(
                session.local_image_path, session.position
            )
        except UploadError as exc:
            self._release(session)
            logger.warning("Upload failed at %s stage: %s", exc.stage, exc)
            await self.notifier.alert("Upload Error", str(exc))
            raise
        except BaseException:
            self._release(session)
            raise

        self._reset()
        await self._soft_notice("Photo uploaded successfully.")
        return record

    def discard(self) -> bool:
        """Drop the current session unless it is being uploaded."""
        if self.session is not None and self.session.uploading:
            return False
        self._reset()
        return True

    def _reset(self) -> None:
        self.session = None
        self.state = CaptureState.IDLE

    def _settle(self) -> None:
        if self.session is None:
            self.state = CaptureState.IDLE
        else:
            self.state = CaptureState.READY_TO_UPLOAD

    def _release(self, session: CaptureSession) -> None:
        session.uploading = False
        self.state = CaptureState.READY_TO_UPLOAD

    async def _soft_notice(self, message: str) -> None:
        try:
            await self.notifier.notice(message)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not show notice %r: %s", message, exc)

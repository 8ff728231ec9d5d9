"""Device bridge client: OS permissions, camera, geolocation and dialogs."""

import logging
from dataclasses import dataclass

import httpx

from fieldsnap.adapters.device_bridge_models import (
    CameraLaunchPayload,
    PermissionResultPayload,
    PositionPayload,
    SettingsConfirmationPayload,
)
from fieldsnap.domain.capture import CaptureFailed, CaptureRequest, CaptureResult
from fieldsnap.domain.location import (
    FixFailed,
    FixOptions,
    FixResult,
    GeolocationErrorCode,
)
from fieldsnap.services.capture import CameraDevice
from fieldsnap.services.location import GeolocationBackend
from fieldsnap.services.permissions import Notifier, PermissionPlatform

logger = logging.getLogger(__name__)

_TRANSPORT_GRACE_SECONDS = 5


@dataclass
class HttpxDeviceBridgeClient(
    PermissionPlatform, CameraDevice, GeolocationBackend, Notifier
):
    """Talks to the HTTP agent running on the field device."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "HttpxDeviceBridgeClient":
        """Create a bridge client with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def check(self, permission_id: str) -> str:
        """Return the raw status of a permission."""
        response = await self.http_client.get(
            f"{self.base_url}/permissions/{permission_id}", timeout=10
        )
        response.raise_for_status()
        return PermissionResultPayload.model_validate(response.json()).result

    async def request(self, permission_id: str) -> str:
        """Prompt for a permission and return the raw result."""
        response = await self.http_client.post(
            f"{self.base_url}/permissions/{permission_id}/request", timeout=None
        )
        response.raise_for_status()
        return PermissionResultPayload.model_validate(response.json()).result

    async def open_settings(self) -> None:
        """Open the app's OS settings page."""
        response = await self.http_client.post(
            f"{self.base_url}/settings/open", timeout=10
        )
        response.raise_for_status()

    async def launch(self, request: CaptureRequest) -> CaptureResult:
        """Open the camera and wait for the user to finish."""
        try:
            response = await self.http_client.post(
                f"{self.base_url}/camera/launch",
                json={
                    "mediaType": request.media_type,
                    "saveToPhotos": request.save_to_photos,
                },
                timeout=None,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Camera launch failed: %s", exc)
            return CaptureFailed(code="bridge_error", message=str(exc))
        return CameraLaunchPayload.model_validate(response.json()).to_result()

    async def configure(
        self, *, skip_permission_requests: bool, background_updates: bool
    ) -> None:
        """Apply location subsystem configuration on the device."""
        response = await self.http_client.post(
            f"{self.base_url}/location/configure",
            json={
                "skipPermissionRequests": skip_permission_requests,
                "enableBackgroundLocationUpdates": background_updates,
            },
            timeout=10,
        )
        response.raise_for_status()

    async def current_position(self, options: FixOptions) -> FixResult:
        """Request a single fix from the device."""
        try:
            response = await self.http_client.get(
                f"{self.base_url}/location/current",
                params={
                    "enableHighAccuracy": str(options.high_accuracy).lower(),
                    "timeout": int(options.timeout_seconds * 1000),
                    "maximumAge": int(options.maximum_age_seconds * 1000),
                },
                timeout=options.timeout_seconds + _TRANSPORT_GRACE_SECONDS,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            return FixFailed(
                code=GeolocationErrorCode.POSITION_UNAVAILABLE, message=str(exc)
            )
        return PositionPayload.model_validate(response.json()).to_result()

    async def alert(self, title: str, message: str) -> None:
        """Show an alert dialog on the device."""
        response = await self.http_client.post(
            f"{self.base_url}/ui/alert",
            json={"title": title, "message": message},
            timeout=10,
        )
        response.raise_for_status()

    async def notice(self, message: str) -> None:
        """Show a toast-style notice on the device."""
        response = await self.http_client.post(
            f"{self.base_url}/ui/notice", json={"message": message}, timeout=10
        )
        response.raise_for_status()

    async def ask_open_settings(self, title: str, message: str) -> bool:
        """Show the Cancel / Open Settings dialog and return the choice."""
        response = await self.http_client.post(
            f"{self.base_url}/ui/confirm-settings",
            json={"title": title, "message": message},
            timeout=None,
        )
        response.raise_for_status()
        return SettingsConfirmationPayload.model_validate(response.json()).confirmed

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

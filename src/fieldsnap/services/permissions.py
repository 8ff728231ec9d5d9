"""Permission gate over the device OS capability APIs."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from fieldsnap.domain.permissions import Capability, PermissionState
from fieldsnap.errors import PermissionDenied, PermissionPermanentlyDenied
from fieldsnap.platforms import PlatformProfile

logger = logging.getLogger(__name__)

_GRANTED = {"granted", "limited"}
_PERMANENT = {"blocked", "never_ask_again"}


class PermissionPlatform(Protocol):
    """Interface for the device permission API."""

    async def check(self, permission_id: str) -> str:
        """Return the raw status of a permission without prompting."""

    async def request(self, permission_id: str) -> str:
        """Prompt for a permission and return the raw result."""

    async def open_settings(self) -> None:
        """Open the OS settings page for the app."""


class Notifier(Protocol):
    """Interface for user-facing dialogs on the device."""

    async def alert(self, title: str, message: str) -> None:
        """Show a blocking alert."""

    async def notice(self, message: str) -> None:
        """Show a soft, non-blocking notice."""

    async def ask_open_settings(self, title: str, message: str) -> bool:
        """Offer to open OS settings; return True if the user accepted."""


@dataclass
class PermissionGate:
    """Queries, requests and classifies OS capability grants."""

    platform: PermissionPlatform
    notifier: Notifier
    profile: PlatformProfile

    async def check_status(self, capability: Capability) -> PermissionState:
        """Return the current state of a capability without prompting."""
        raw = await self.platform.check(self.profile.permission_id(capability))
        return self._classify(raw, request_path=False)

    async def check_variants(self, capability: Capability) -> list[PermissionState]:
        """Check every status variant the platform defines for a capability."""
        states = []
        for permission_id in self.profile.variants(capability):
            raw = await self.platform.check(permission_id)
            states.append(self._classify(raw, request_path=False))
        return states

    async def request(self, capability: Capability) -> PermissionState:
        """Prompt for a capability and return the classified result."""
        raw = await self.platform.request(self.profile.permission_id(capability))
        state = self._classify(raw, request_path=True)
        logger.info("Permission %s resolved to %s", capability, state)
        return state

    async def ensure_granted(self, capabilities: Iterable[Capability]) -> None:
        """Request each capability in order and abort on the first refusal."""
        for capability in capabilities:
            state = await self.request(capability)
            if state is PermissionState.GRANTED:
                continue
            await self.notifier.alert(
                "Permission Denied",
                f"The {capability.replace('_', ' ')} permission is required.",
            )
            if self.settings_offered(state):
                await self.offer_settings(
                    "Permission Required",
                    "Please allow access in your device settings to continue.",
                )
            if state is PermissionState.PERMANENTLY_DENIED:
                raise PermissionPermanentlyDenied(capability)
            raise PermissionDenied(capability)

    def settings_offered(self, state: PermissionState) -> bool:
        """Return whether a refusal warrants the settings deep link."""
        if state is PermissionState.PERMANENTLY_DENIED:
            return True
        # Without an explicit signal a denial cannot be re-prompted in-app.
        return state is PermissionState.DENIED and (
            not self.profile.reports_permanent_denial
        )

    async def offer_settings(self, title: str, message: str) -> bool:
        """Open OS settings only after the user explicitly agrees."""
        if not await self.notifier.ask_open_settings(title, message):
            return False
        await self.platform.open_settings()
        return True

    def _classify(self, raw: str, *, request_path: bool) -> PermissionState:
        if raw in _GRANTED:
            return PermissionState.GRANTED
        if raw == "unavailable":
            return PermissionState.UNKNOWN
        if raw in _PERMANENT:
            if request_path and self.profile.reports_permanent_denial:
                return PermissionState.PERMANENTLY_DENIED
            return PermissionState.DENIED
        if raw != "denied":
            logger.warning("Unrecognized permission result %r", raw)
        return PermissionState.DENIED

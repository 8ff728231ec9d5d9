"""Location acquisition with a two-tier accuracy fallback."""

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Protocol

from fieldsnap.domain.location import (
    FixFailed,
    FixOptions,
    FixResult,
    FixSucceeded,
    GeolocationErrorCode,
    Position,
)
from fieldsnap.domain.permissions import (
    Capability,
    LocationPermissionStatus,
    PermissionState,
)
from fieldsnap.domain.photos import Coordinates
from fieldsnap.errors import (
    LocationPermissionDenied,
    LocationTimeout,
    LocationUnavailable,
    PermissionDenied,
)
from fieldsnap.services.permissions import PermissionGate

logger = logging.getLogger(__name__)

HIGH_ACCURACY_FIX = FixOptions(
    high_accuracy=True, timeout_seconds=15, maximum_age_seconds=10
)
RELAXED_FIX = FixOptions(
    high_accuracy=False, timeout_seconds=20, maximum_age_seconds=10
)
WATCH_FIX = FixOptions(
    high_accuracy=True, timeout_seconds=30, maximum_age_seconds=120
)
WATCH_INTERVAL_SECONDS = 120.0


class GeolocationBackend(Protocol):
    """Interface for the device geolocation API."""

    async def configure(
        self, *, skip_permission_requests: bool, background_updates: bool
    ) -> None:
        """Apply process-wide location subsystem configuration."""

    async def current_position(self, options: FixOptions) -> FixResult:
        """Resolve a single fix, reporting failures as a tagged result."""


@dataclass
class LocationProvider:
    """Resolves position fixes and optionally tracks the last known one."""

    backend: GeolocationBackend
    permissions: PermissionGate
    watch_enabled: bool = False
    watch_interval_seconds: float = WATCH_INTERVAL_SECONDS
    high_accuracy_fix: FixOptions = HIGH_ACCURACY_FIX
    relaxed_fix: FixOptions = RELAXED_FIX
    watch_fix: FixOptions = WATCH_FIX
    _configured: bool = field(default=False, init=False)
    _last_known: Position | None = field(default=None, init=False)
    _watch_task: asyncio.Task[None] | None = field(default=None, init=False)

    async def setup(self) -> None:
        """Configure the location subsystem once per process."""
        if self._configured:
            return
        await self.backend.configure(
            skip_permission_requests=False, background_updates=False
        )
        self._configured = True
        logger.info("Location subsystem configured")
        if self.watch_enabled:
            self.watch_position()

    async def teardown(self) -> None:
        """Release the watch loop."""
        await self.clear_watch()

    async def get_current_position(self) -> Position:
        """Resolve a fix, falling back once to a relaxed-accuracy request."""
        first = await self._resolve(self.high_accuracy_fix)
        if isinstance(first, FixSucceeded):
            return _to_position(first, self.high_accuracy_fix)
        logger.info(
            "High-accuracy fix failed (%s: %s), retrying relaxed",
            first.code.name,
            first.message,
        )
        if first.code is GeolocationErrorCode.PERMISSION_DENIED:
            state = await self.permissions.request(Capability.FINE_LOCATION)
            if state is not PermissionState.GRANTED:
                await self._offer_settings()
                raise LocationPermissionDenied(first.message)

        second = await self._resolve(self.relaxed_fix)
        if isinstance(second, FixSucceeded):
            return _to_position(second, self.relaxed_fix)
        if second.code is GeolocationErrorCode.PERMISSION_DENIED:
            await self._offer_settings()
            raise LocationPermissionDenied(second.message)
        if second.code is GeolocationErrorCode.TIMEOUT:
            raise LocationTimeout(second.message)
        raise LocationUnavailable(second.message)

    @property
    def last_known(self) -> Position | None:
        """Return the most recent fix recorded by the watch loop."""
        return self._last_known

    def get_coordinates(self) -> Coordinates | None:
        """Return the last known fix as record coordinates."""
        if self._last_known is None:
            return None
        return Coordinates(
            lat=self._last_known.latitude, lon=self._last_known.longitude
        )

    def watch_position(self) -> None:
        """Start continuously refreshing the last known fix."""
        if self._watch_task is not None and not self._watch_task.done():
            return
        self._watch_task = asyncio.get_running_loop().create_task(self._watch())

    async def clear_watch(self) -> None:
        """Stop the watch loop if one is running."""
        task, self._watch_task = self._watch_task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def check_current_status(self) -> LocationPermissionStatus:
        """Report whether location access is granted without prompting."""
        try:
            states = await self.permissions.check_variants(Capability.FINE_LOCATION)
        except Exception:  # noqa: BLE001
            logger.exception("Location permission check failed")
            return LocationPermissionStatus.DENIED
        if PermissionState.GRANTED in states:
            return LocationPermissionStatus.GRANTED
        if (
            self.permissions.profile.reports_unavailable_status
            and states
            and all(state is PermissionState.UNKNOWN for state in states)
        ):
            return LocationPermissionStatus.UNKNOWN
        return LocationPermissionStatus.DENIED

    async def request_permission(self) -> None:
        """Prompt for fine location access, offering settings on refusal."""
        try:
            await self.permissions.ensure_granted([Capability.FINE_LOCATION])
        except PermissionDenied as exc:
            raise LocationPermissionDenied(str(exc)) from exc

    async def _resolve(self, options: FixOptions) -> FixResult:
        try:
            return await asyncio.wait_for(
                self.backend.current_position(options), options.timeout_seconds
            )
        except TimeoutError:
            return FixFailed(
                code=GeolocationErrorCode.TIMEOUT,
                message=f"No fix within {options.timeout_seconds}s",
            )

    async def _offer_settings(self) -> None:
        await self.permissions.offer_settings(
            "Location Permission Required",
            "Please allow location access in your device settings "
            "to tag photos with their position.",
        )

    async def _watch(self) -> None:
        while True:
            try:
                result = await self._resolve(self.watch_fix)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Watch update failed: %s", exc)
            else:
                if isinstance(result, FixSucceeded):
                    self._last_known = _to_position(result, self.watch_fix)
                else:
                    logger.debug("Watch update failed: %s", result.message)
            await asyncio.sleep(self.watch_interval_seconds)


def _to_position(result: FixSucceeded, options: FixOptions) -> Position:
    reading = result.reading
    return Position(
        latitude=reading.latitude,
        longitude=reading.longitude,
        accuracy_tier=options.tier,
        resolved_at=reading.timestamp,
    )

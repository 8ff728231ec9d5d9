"""Domain models for position fixes."""

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum, StrEnum


class AccuracyTier(StrEnum):
    """Precision tier a fix was requested with."""

    HIGH = "high"
    COARSE = "coarse"


class GeolocationErrorCode(IntEnum):
    """Error codes reported by the device geolocation API."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


@dataclass(frozen=True)
class Position:
    """A resolved fix. Never mutated after creation."""

    latitude: float
    longitude: float
    accuracy_tier: AccuracyTier
    resolved_at: datetime


@dataclass(frozen=True)
class FixOptions:
    """Options for a single position request."""

    high_accuracy: bool
    timeout_seconds: float
    maximum_age_seconds: float

    @property
    def tier(self) -> AccuracyTier:
        return AccuracyTier.HIGH if self.high_accuracy else AccuracyTier.COARSE


@dataclass(frozen=True)
class PositionReading:
    """Raw reading as reported by the device."""

    latitude: float
    longitude: float
    accuracy_meters: float | None
    timestamp: datetime


@dataclass(frozen=True)
class FixSucceeded:
    reading: PositionReading


@dataclass(frozen=True)
class FixFailed:
    code: GeolocationErrorCode
    message: str


FixResult = FixSucceeded | FixFailed

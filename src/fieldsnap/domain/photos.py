"""Domain models for persisted photo records and their views."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Coordinates:
    """Latitude/longitude pair stored with a record."""

    lat: float
    lon: float


@dataclass(frozen=True)
class ImageReference:
    """Exactly one representation of a stored image."""

    remote_url: str | None = None
    inline_payload: str | None = None

    def __post_init__(self) -> None:
        if (self.remote_url is None) == (self.inline_payload is None):
            raise ValueError("Image reference needs exactly one representation")

    @property
    def source(self) -> str:
        """Return a URI any image viewer can load."""
        if self.remote_url is not None:
            return self.remote_url
        return f"data:image/jpeg;base64,{self.inline_payload}"


@dataclass(frozen=True)
class PhotoRecord:
    """Represents a photo persisted in the remote store."""

    id: str
    image: ImageReference
    coordinates: Coordinates | None
    created_at: datetime | None


@dataclass(frozen=True)
class PhotoQuery:
    """Parameters of a display surface subscription."""

    newest_first: bool = False
    since: datetime | None = None


@dataclass(frozen=True)
class GalleryItem:
    """A row of the chronological list view."""

    id: str
    image_source: str
    coordinates_text: str | None
    timestamp_label: str
    maps_url: str | None


@dataclass(frozen=True)
class MapMarker:
    """A pin on the map view."""

    id: str
    lat: float
    lon: float
    title: str
    image_source: str

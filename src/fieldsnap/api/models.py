"""Pydantic response models for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel

from fieldsnap.domain.capture import CaptureSession, CaptureState
from fieldsnap.domain.photos import GalleryItem, MapMarker, PhotoRecord


class CoordinatesOut(BaseModel):
    lat: float
    lon: float


class SessionOut(BaseModel):
    """Capture session as shown to the capture screen."""

    local_image_path: str
    coordinates: CoordinatesOut | None
    uploading: bool

    @classmethod
    def from_session(cls, session: CaptureSession) -> "SessionOut":
        position = session.position
        return cls(
            local_image_path=session.local_image_path,
            coordinates=(
                CoordinatesOut(lat=position.latitude, lon=position.longitude)
                if position
                else None
            ),
            uploading=session.uploading,
        )


class CaptureStatusOut(BaseModel):
    """Capture screen state."""

    state: CaptureState
    session: SessionOut | None = None


class PhotoOut(BaseModel):
    """Persisted photo record."""

    id: str
    image_source: str
    coordinates: CoordinatesOut | None
    created_at: datetime | None

    @classmethod
    def from_record(cls, record: PhotoRecord) -> "PhotoOut":
        coordinates = record.coordinates
        return cls(
            id=record.id,
            image_source=record.image.source,
            coordinates=(
                CoordinatesOut(lat=coordinates.lat, lon=coordinates.lon)
                if coordinates
                else None
            ),
            created_at=record.created_at,
        )


class GalleryItemOut(BaseModel):
    id: str
    image_source: str
    coordinates_text: str | None
    timestamp_label: str
    maps_url: str | None

    @classmethod
    def from_item(cls, item: GalleryItem) -> "GalleryItemOut":
        return cls(
            id=item.id,
            image_source=item.image_source,
            coordinates_text=item.coordinates_text,
            timestamp_label=item.timestamp_label,
            maps_url=item.maps_url,
        )


class MapMarkerOut(BaseModel):
    id: str
    lat: float
    lon: float
    title: str
    image_source: str

    @classmethod
    def from_marker(cls, marker: MapMarker) -> "MapMarkerOut":
        return cls(
            id=marker.id,
            lat=marker.lat,
            lon=marker.lon,
            title=marker.title,
            image_source=marker.image_source,
        )

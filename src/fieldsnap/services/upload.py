"""Upload pipeline: normalize, verify, compress, encode and persist a capture."""

import asyncio
import base64
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from fieldsnap.domain.location import Position
from fieldsnap.domain.photos import (
    Coordinates,
    ImageReference,
    PhotoQuery,
    PhotoRecord,
)
from fieldsnap.errors import (
    CompressionFailure,
    FileNotFound,
    PersistenceFailure,
    UploadError,
    UploadTransportFailure,
)
from fieldsnap.platforms import PlatformProfile

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class ImageCompressor(Protocol):
    """Interface for recompressing a captured image."""

    async def compress(self, path: Path, max_dimension: int, quality: int) -> bytes:
        """Return JPEG bytes bounded by the given dimension and quality."""


class ObjectStorage(Protocol):
    """Interface for binary object storage."""

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store bytes under a key and return a retrievable URL."""


class PhotoRepository(Protocol):
    """Persistence interface for photo records."""

    async def create_photo(
        self, image: ImageReference, coordinates: Coordinates | None
    ) -> PhotoRecord:
        """Insert a record; the store assigns the id and timestamp."""

    async def list_photos(self, query: PhotoQuery) -> list[PhotoRecord]:
        """Return every record matching a surface query."""

    async def replace_image(self, photo_id: str, image: ImageReference) -> None:
        """Swap the stored image representation of a record."""


class ImageEncoder(Protocol):
    """Strategy turning compressed bytes into a stored image reference."""

    async def encode(self, filename: str, data: bytes) -> ImageReference:
        """Return the reference to persist for the image."""


@dataclass
class RemoteUrlEncoder(ImageEncoder):
    """Uploads the binary to object storage and references it by URL."""

    storage: ObjectStorage
    prefix: str = "images"

    async def encode(self, filename: str, data: bytes) -> ImageReference:
        key = f"{self.prefix}/{uuid4().hex[:8]}-{sanitize_filename(filename)}"
        try:
            url = await self.storage.upload(key, data, "image/jpeg")
        except Exception as exc:
            raise UploadTransportFailure(f"Failed to upload {key}") from exc
        logger.info("Uploaded image to %s", key)
        return ImageReference(remote_url=url)


@dataclass
class InlineBase64Encoder(ImageEncoder):
    """Embeds the compressed bytes directly in the record."""

    max_bytes: int

    async def encode(self, filename: str, data: bytes) -> ImageReference:
        if len(data) > self.max_bytes:
            raise CompressionFailure(
                f"Compressed image is {len(data)} bytes, inline limit is "
                f"{self.max_bytes}"
            )
        return ImageReference(inline_payload=base64.b64encode(data).decode("ascii"))


@dataclass
class UploadPipeline:
    """Runs the ordered, hard-gated upload stages for one capture."""

    profile: PlatformProfile
    compressor: ImageCompressor
    encoder: ImageEncoder
    repository: PhotoRepository
    max_dimension: int = 1024
    quality: int = 80

    async def run(
        self, local_image_path: str, position: Position | None
    ) -> PhotoRecord:
        """Persist a captured image; any stage failure aborts the rest."""
        path = Path(self.profile.normalize_path(local_image_path))
        logger.info("Uploading %s", path)

        if not await asyncio.to_thread(path.is_file):
            raise FileNotFound(str(path))

        try:
            data = await self.compressor.compress(
                path, self.max_dimension, self.quality
            )
        except UploadError:
            raise
        except Exception as exc:
            raise CompressionFailure(f"Failed to compress {path}") from exc
        logger.info("Compressed %s to %d bytes", path.name, len(data))

        image = await self.encoder.encode(path.name, data)

        coordinates = (
            Coordinates(lat=position.latitude, lon=position.longitude)
            if position is not None
            else None
        )
        try:
            record = await self.repository.create_photo(image, coordinates)
        except Exception as exc:
            raise PersistenceFailure("Failed to save photo record") from exc
        logger.info("Saved photo record %s", record.id)
        return record


def sanitize_filename(filename: str) -> str:
    """Reduce a filename to a storage-safe key segment."""
    name = _UNSAFE_FILENAME_CHARS.sub("_", Path(filename).name).strip("._")
    return name or f"image_{uuid4().hex[:8]}.jpg"

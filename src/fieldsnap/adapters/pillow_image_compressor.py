"""Pillow-based image recompression."""

import asyncio
import io
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageFile, ImageOps

from fieldsnap.services.upload import ImageCompressor

ImageFile.LOAD_TRUNCATED_IMAGES = True


@dataclass
class PillowImageCompressor(ImageCompressor):
    """Downscales and re-encodes images as JPEG."""

    async def compress(self, path: Path, max_dimension: int, quality: int) -> bytes:
        """Return JPEG bytes no larger than max_dimension on either side."""
        return await asyncio.to_thread(_compress_sync, path, max_dimension, quality)


def _compress_sync(path: Path, max_dimension: int, quality: int) -> bytes:
    with Image.open(path) as img:
        image = ImageOps.exif_transpose(img)
        if image.mode != "RGB":
            image = image.convert("RGB")
        image.thumbnail((max_dimension, max_dimension))
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality, optimize=True)
        return buffer.getvalue()

"""Migration of inline-encoded records to hosted image URLs."""

import base64
import logging
from dataclasses import dataclass

from fieldsnap.domain.photos import PhotoQuery
from fieldsnap.services.upload import PhotoRepository, RemoteUrlEncoder

logger = logging.getLogger(__name__)


@dataclass
class RepresentationMigrator:
    """Moves every inline payload into object storage."""

    repository: PhotoRepository
    encoder: RemoteUrlEncoder

    async def migrate_inline_images(self) -> int:
        """Rewrite inline records to URL records and return how many changed."""
        records = await self.repository.list_photos(PhotoQuery())
        migrated = 0
        for record in records:
            payload = record.image.inline_payload
            if payload is None:
                continue
            data = base64.b64decode(payload)
            image = await self.encoder.encode(f"{record.id}.jpg", data)
            await self.repository.replace_image(record.id, image)
            migrated += 1
        logger.info("Migrated %d inline images to storage", migrated)
        return migrated

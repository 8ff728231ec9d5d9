"""Supabase Storage adapter for image binaries."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from fieldsnap.services.upload import ObjectStorage


@dataclass
class SupabaseObjectStorage(ObjectStorage):
    """Stores images in a public Supabase Storage bucket."""

    client: Client
    bucket: str = "images"

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload bytes and return the public download URL."""

        def upload_sync() -> str:
            bucket = self.client.storage.from_(self.bucket)
            bucket.upload(path, data, {"content-type": content_type})
            return bucket.get_public_url(path)

        return await asyncio.to_thread(upload_sync)

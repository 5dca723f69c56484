"""Supabase Storage backend for submitted images."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from verification_bot.services.artifacts import ArtifactStorage


@dataclass
class SupabaseArtifactStorage(ArtifactStorage):
    """Uploads images into a public Supabase bucket."""

    client: Client
    bucket: str
    folder: str | None = None

    async def store(self, name: str, content: bytes, mime_type: str) -> str:
        """Upload the object and return the bucket's public URL for it."""
        path = f"{self.folder}/{name}" if self.folder else name
        bucket = self.client.storage.from_(self.bucket)
        await asyncio.to_thread(
            bucket.upload, path, content, {"content-type": mime_type}
        )
        return bucket.get_public_url(path)

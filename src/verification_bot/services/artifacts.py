"""Turn submitted images into durable artifact references."""

import base64
import logging
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPE = "image/jpeg"


class ArtifactStorage(Protocol):
    """Storage backend that publishes named objects."""

    async def store(self, name: str, content: bytes, mime_type: str) -> str:
        """Persist bytes as a publicly readable object and return its link."""


class ArtifactIngestor(Protocol):
    """Produces a reference for a user's submitted image."""

    async def ingest(self, content: AsyncIterator[bytes], user_id: str) -> str:
        """Consume the content stream and return a durable reference."""


async def read_stream(content: AsyncIterator[bytes]) -> bytes:
    """Read an async byte stream to completion."""
    chunks = [chunk async for chunk in content]
    return b"".join(chunks)


def _unix_millis() -> int:
    return time.time_ns() // 1_000_000


def artifact_name(user_id: str, millis: int) -> str:
    """Build the per-user object name for an uploaded image."""
    return f"{user_id}_{millis}.jpg"


@dataclass
class InlineArtifactIngestor(ArtifactIngestor):
    """Encode the image into a data URL stored directly in the record."""

    mime_type: str = IMAGE_MIME_TYPE

    async def ingest(self, content: AsyncIterator[bytes], user_id: str) -> str:
        data = await read_stream(content)
        encoded = base64.b64encode(data).decode("ascii")
        logger.info(
            "Encoded image inline",
            extra={"user_id": user_id, "encoded_length": len(encoded)},
        )
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass
class UploadArtifactIngestor(ArtifactIngestor):
    """Upload the image to a storage backend and return its public link."""

    storage: ArtifactStorage
    mime_type: str = IMAGE_MIME_TYPE
    clock_millis: Callable[[], int] = field(default=_unix_millis)

    async def ingest(self, content: AsyncIterator[bytes], user_id: str) -> str:
        data = await read_stream(content)
        name = artifact_name(user_id, self.clock_millis())
        link = await self.storage.store(name, data, self.mime_type)
        logger.info(
            "Uploaded image",
            extra={"user_id": user_id, "artifact_name": name},
        )
        return link

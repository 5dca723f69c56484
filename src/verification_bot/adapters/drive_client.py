"""Google Drive upload client."""

import json
import uuid
from dataclasses import dataclass

import httpx

from verification_bot.adapters.google_auth import AccessTokenProvider
from verification_bot.services.artifacts import ArtifactStorage

DRIVE_BASE_URL = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"


@dataclass(frozen=True)
class DriveFile:
    """Identifier and viewer link of an uploaded Drive file."""

    id: str
    web_view_link: str


@dataclass
class HttpxDriveClient(ArtifactStorage):
    """Drive v3 REST client that uploads into a single folder."""

    folder_id: str
    token_provider: AccessTokenProvider
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, folder_id: str, token_provider: AccessTokenProvider
    ) -> "HttpxDriveClient":
        """Create a Drive client with a managed httpx session."""
        return cls(
            folder_id=folder_id,
            token_provider=token_provider,
            http_client=httpx.AsyncClient(),
        )

    async def create_file(
        self, name: str, content: bytes, mime_type: str
    ) -> DriveFile:
        """Upload a file with a multipart request."""
        metadata = {"name": name, "parents": [self.folder_id], "mimeType": mime_type}
        boundary = uuid.uuid4().hex
        body = _multipart_related(boundary, metadata, content, mime_type)
        headers = await self._headers()
        headers["Content-Type"] = f"multipart/related; boundary={boundary}"
        response = await self.http_client.post(
            DRIVE_UPLOAD_URL,
            params={"uploadType": "multipart", "fields": "id,webViewLink"},
            content=body,
            headers=headers,
            timeout=60,
        )
        response.raise_for_status()
        payload = response.json()
        return DriveFile(id=payload["id"], web_view_link=payload["webViewLink"])

    async def grant_public_read(self, file_id: str) -> None:
        """Allow anyone with the link to view the file."""
        response = await self.http_client.post(
            f"{DRIVE_BASE_URL}/files/{file_id}/permissions",
            json={"role": "reader", "type": "anyone"},
            headers=await self._headers(),
            timeout=15,
        )
        response.raise_for_status()

    async def store(self, name: str, content: bytes, mime_type: str) -> str:
        """Upload, publish and return the viewer link."""
        drive_file = await self.create_file(name, content, mime_type)
        await self.grant_public_read(drive_file.id)
        return drive_file.web_view_link

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _headers(self) -> dict[str, str]:
        token = await self.token_provider.get_token()
        return {"Authorization": f"Bearer {token}"}


def _multipart_related(
    boundary: str, metadata: dict[str, object], content: bytes, mime_type: str
) -> bytes:
    delimiter = f"--{boundary}\r\n".encode()
    return b"".join(
        [
            delimiter,
            b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
            json.dumps(metadata).encode(),
            b"\r\n",
            delimiter,
            f"Content-Type: {mime_type}\r\n\r\n".encode(),
            content,
            f"\r\n--{boundary}--\r\n".encode(),
        ]
    )

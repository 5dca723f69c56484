"""LINE Messaging API client adapter."""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol

import httpx

LINE_API_URL = "https://api.line.me/v2/bot"
LINE_DATA_API_URL = "https://api-data.line.me/v2/bot"


class LineClient(Protocol):
    """Interface for LINE Messaging API interactions."""

    async def reply(self, reply_token: str, text: str) -> None:
        """Reply to an event with a text message."""

    async def push(self, user_id: str, text: str) -> None:
        """Push a text message to a user outside the reply window."""

    def iter_message_content(self, message_id: str) -> AsyncIterator[bytes]:
        """Stream the binary content attached to a message."""


def text_message(text: str) -> dict[str, str]:
    """Build a LINE text message object."""
    return {"type": "text", "text": text}


@dataclass
class HttpxLineClient(LineClient):
    """LINE client implemented with httpx."""

    channel_access_token: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, channel_access_token: str) -> "HttpxLineClient":
        """Create a LINE client with a managed httpx session."""
        return cls(
            channel_access_token=channel_access_token,
            http_client=httpx.AsyncClient(),
        )

    async def reply(self, reply_token: str, text: str) -> None:
        """Send a reply using the reply token of an event."""
        payload = {"replyToken": reply_token, "messages": [text_message(text)]}
        response = await self.http_client.post(
            f"{LINE_API_URL}/message/reply",
            json=payload,
            headers=self._headers(),
            timeout=10,
        )
        response.raise_for_status()

    async def push(self, user_id: str, text: str) -> None:
        """Send a push message to a user."""
        payload = {"to": user_id, "messages": [text_message(text)]}
        response = await self.http_client.post(
            f"{LINE_API_URL}/message/push",
            json=payload,
            headers=self._headers(),
            timeout=10,
        )
        response.raise_for_status()

    async def iter_message_content(self, message_id: str) -> AsyncIterator[bytes]:
        """Stream message content from the data API."""
        async with self.http_client.stream(
            "GET",
            f"{LINE_DATA_API_URL}/message/{message_id}/content",
            headers=self._headers(),
            timeout=30,
        ) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                yield chunk

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.channel_access_token}"}

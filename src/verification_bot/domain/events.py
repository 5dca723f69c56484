"""Inbound chat events handled by the conversation engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TextEvent:
    """A text message sent by a user."""

    user_id: str
    text: str
    reply_token: str | None = None


@dataclass(frozen=True)
class ImageEvent:
    """An image message; the bytes are fetched later by content id."""

    user_id: str
    content_id: str
    reply_token: str | None = None


InboundEvent = TextEvent | ImageEvent

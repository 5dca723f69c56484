"""Pydantic models for LINE webhook payloads."""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from verification_bot.domain.events import ImageEvent, InboundEvent, TextEvent

logger = logging.getLogger(__name__)


class LineSource(BaseModel):
    """Event source payload."""

    type: str | None = None
    user_id: str | None = Field(default=None, alias="userId")


class LineMessage(BaseModel):
    """Message payload attached to a message event."""

    id: str | None = None
    type: str | None = None
    text: str | None = None


class LineEvent(BaseModel):
    """Single webhook event."""

    model_config = ConfigDict(populate_by_name=True)

    type: str | None = None
    reply_token: str | None = Field(default=None, alias="replyToken")
    source: LineSource | None = None
    message: LineMessage | None = None

    def to_inbound(self) -> InboundEvent | None:
        """Convert to a domain event, or None for anything the bot ignores."""
        if self.type != "message" or self.message is None:
            return None
        user_id = self.source.user_id if self.source else None
        if not user_id:
            return None
        if self.message.type == "text" and self.message.text is not None:
            return TextEvent(
                user_id=user_id, text=self.message.text, reply_token=self.reply_token
            )
        if self.message.type == "image" and self.message.id:
            return ImageEvent(
                user_id=user_id,
                content_id=self.message.id,
                reply_token=self.reply_token,
            )
        return None


class LineWebhookBody(BaseModel):
    """Webhook envelope delivered by the LINE platform.

    Events stay raw here so one malformed event cannot reject the delivery.
    """

    destination: str | None = None
    events: list[Any] = Field(default_factory=list)

    def inbound_events(self) -> list[InboundEvent | None]:
        """Convert every event, using None for ignored or malformed ones."""
        return [_parse_event(raw) for raw in self.events]


def _parse_event(raw: object) -> InboundEvent | None:
    if not isinstance(raw, dict):
        logger.warning("Skipping non-object webhook event")
        return None
    try:
        event = LineEvent.model_validate(raw)
    except ValidationError:
        logger.warning("Skipping malformed webhook event", exc_info=True)
        return None
    return event.to_inbound()

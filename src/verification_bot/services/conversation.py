"""Conversation state machine for membership verification."""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from verification_bot.adapters.line_client import LineClient
from verification_bot.domain.events import ImageEvent, InboundEvent, TextEvent
from verification_bot.domain.sessions import (
    AwaitingHandle,
    AwaitingImage,
    AwaitingPhone,
    SessionState,
)
from verification_bot.services.artifacts import ArtifactIngestor
from verification_bot.services.members import DuplicateChecker
from verification_bot.services.records import RecordWriter
from verification_bot.services.session_store import SessionStore

logger = logging.getLogger(__name__)

ALREADY_MEMBER_TEXT = "您已是會員，若要修改請洽客服。"
ASK_PHONE_TEXT = "開始會員驗證，請輸入您的手機號碼："
ASK_HANDLE_TEXT = "收到！接著請輸入您的 LINE ID："
ASK_IMAGE_TEXT = "最後一步，請上傳您的個人檔案截圖："
PROCESSING_TEXT = "正在處理資料並寫入試算表，請稍候..."
SUCCESS_TEXT = "✅ 驗證成功！資料已寫入系統，請等待管理員審核。"
FAILURE_TEXT = "❌ 寫入資料時發生錯誤，請聯絡管理員。"

FAILURE_REASONS = {
    "ingest": "圖片處理失敗，請重新上傳截圖。",
    "append": "資料寫入失敗，請重新上傳截圖。",
}


@dataclass(frozen=True)
class EventOutcome:
    """What the engine did with one event."""

    user_id: str
    action: str
    state: SessionState | None

    def as_dict(self) -> dict[str, str | None]:
        return {
            "userId": self.user_id,
            "action": self.action,
            "state": self.state.value if self.state else None,
        }


@dataclass(frozen=True)
class FinalizeResult:
    """Result of the ingest and append steps for a submitted image."""

    ok: bool
    reference: str | None = None
    stage: str | None = None
    detail: str | None = None

    @classmethod
    def failed(cls, stage: str, exc: Exception) -> "FinalizeResult":
        return cls(ok=False, stage=stage, detail=f"{type(exc).__name__}: {exc}")


class UserLocks:
    """Per-user FIFO locks; entries are dropped once nobody holds or waits."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._holders[user_id] = self._holders.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[user_id] -= 1
            if not self._holders[user_id]:
                del self._holders[user_id]
                del self._locks[user_id]

    def __len__(self) -> int:
        return len(self._locks)


@dataclass
class ConversationEngine:
    """Drives each user through trigger, phone, handle and image steps."""

    session_store: SessionStore
    duplicate_checker: DuplicateChecker
    artifact_ingestor: ArtifactIngestor
    record_writer: RecordWriter
    line_client: LineClient
    trigger_keywords: frozenset[str]
    debug_errors: bool = False
    locks: UserLocks = field(default_factory=UserLocks)

    async def handle_batch(
        self, events: Sequence[InboundEvent | None]
    ) -> list[EventOutcome | None]:
        """Process one webhook delivery.

        Each user's events run in delivery order; different users run
        concurrently. Results line up with ``events``.
        """
        results: list[EventOutcome | None] = [None] * len(events)
        per_user: dict[str, list[int]] = {}
        for index, event in enumerate(events):
            if event is not None:
                per_user.setdefault(event.user_id, []).append(index)

        async def run_user(indices: list[int]) -> None:
            for index in indices:
                event = events[index]
                if event is not None:
                    results[index] = await self.handle_event(event)

        await asyncio.gather(*(run_user(indices) for indices in per_user.values()))
        return results

    async def handle_event(self, event: InboundEvent) -> EventOutcome | None:
        """Apply one event to its user's session."""
        async with self.locks.hold(event.user_id):
            if isinstance(event, TextEvent):
                return await self._handle_text(event)
            if isinstance(event, ImageEvent):
                return await self._handle_image(event)
        return None

    async def _handle_text(self, event: TextEvent) -> EventOutcome | None:
        user_id = event.user_id
        text = event.text.strip()
        session = self.session_store.get(user_id)
        logger.info("Received text", extra={"user_id": user_id})

        if session is None:
            if text not in self.trigger_keywords:
                return None
            if await self.duplicate_checker.exists(user_id):
                await self._reply(event, ALREADY_MEMBER_TEXT)
                return EventOutcome(user_id, "already_member", None)
            new_session = AwaitingPhone(user_id=user_id)
            self.session_store.put(user_id, new_session)
            await self._reply(event, ASK_PHONE_TEXT)
            return EventOutcome(user_id, "ask_phone", new_session.state)

        if isinstance(session, AwaitingPhone):
            next_session = AwaitingHandle(user_id=user_id, phone=text)
            self.session_store.put(user_id, next_session)
            await self._reply(event, ASK_HANDLE_TEXT)
            return EventOutcome(user_id, "ask_handle", next_session.state)

        if isinstance(session, AwaitingHandle):
            next_session = AwaitingImage(
                user_id=user_id, phone=session.phone, handle=text
            )
            self.session_store.put(user_id, next_session)
            await self._reply(event, ASK_IMAGE_TEXT)
            return EventOutcome(user_id, "ask_image", next_session.state)

        return None

    async def _handle_image(self, event: ImageEvent) -> EventOutcome | None:
        user_id = event.user_id
        session = self.session_store.get(user_id)
        if not isinstance(session, AwaitingImage):
            return None

        logger.info("Processing submitted image", extra={"user_id": user_id})
        await self._notify_processing(user_id)
        result = await self._finalize(session, event.content_id)
        if result.ok:
            self.session_store.delete(user_id)
            logger.info("Verification recorded", extra={"user_id": user_id})
            await self.line_client.push(user_id, SUCCESS_TEXT)
            return EventOutcome(user_id, "verified", None)

        await self.line_client.push(user_id, self._failure_text(result))
        return EventOutcome(user_id, "failed", session.state)

    async def _finalize(
        self, session: AwaitingImage, content_id: str
    ) -> FinalizeResult:
        try:
            reference = await self.artifact_ingestor.ingest(
                self.line_client.iter_message_content(content_id), session.user_id
            )
        except Exception as exc:
            logger.exception("Image ingest failed", extra={"user_id": session.user_id})
            return FinalizeResult.failed("ingest", exc)

        try:
            await self.record_writer.append(
                session.user_id, session.phone, session.handle, reference
            )
        except Exception as exc:
            logger.exception(
                "Record append failed", extra={"user_id": session.user_id}
            )
            return FinalizeResult.failed("append", exc)
        return FinalizeResult(ok=True, reference=reference)

    async def _notify_processing(self, user_id: str) -> None:
        try:
            await self.line_client.push(user_id, PROCESSING_TEXT)
        except Exception:
            logger.exception(
                "Failed to send processing notice", extra={"user_id": user_id}
            )

    async def _reply(self, event: TextEvent, text: str) -> None:
        if event.reply_token:
            await self.line_client.reply(event.reply_token, text)
        else:
            await self.line_client.push(event.user_id, text)

    def _failure_text(self, result: FinalizeResult) -> str:
        lines = [FAILURE_TEXT]
        reason = FAILURE_REASONS.get(result.stage or "")
        if reason:
            lines.append(reason)
        if self.debug_errors and result.detail:
            lines.append(f"(debug: {result.detail})")
        return "\n".join(lines)

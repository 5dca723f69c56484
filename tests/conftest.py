"""Shared test fixtures."""

import asyncio
import json
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import pytest

from verification_bot.adapters.google_auth import AccessTokenProvider
from verification_bot.adapters.line_client import LineClient
from verification_bot.adapters.sheets_client import SheetsClient
from verification_bot.api.signature import compute_signature
from verification_bot.config import Settings
from verification_bot.containers import AppContainer
from verification_bot.services.artifacts import (
    ArtifactIngestor,
    ArtifactStorage,
    InlineArtifactIngestor,
)
from verification_bot.services.conversation import ConversationEngine
from verification_bot.services.members import DuplicateChecker
from verification_bot.services.records import RecordWriter
from verification_bot.services.session_store import InMemorySessionStore

CHANNEL_SECRET = "channel-secret"


@dataclass
class FakeLineClient(LineClient):
    """Fake LINE client that records outgoing messages."""

    replies: list[tuple[str, str]] = field(default_factory=list)
    pushes: list[tuple[str, str]] = field(default_factory=list)
    content: bytes = b"fake-image-bytes"
    fail_processing_notice: bool = False

    async def reply(self, reply_token: str, text: str) -> None:
        self.replies.append((reply_token, text))

    async def push(self, user_id: str, text: str) -> None:
        if self.fail_processing_notice and "請稍候" in text:
            raise RuntimeError("push quota exceeded")
        self.pushes.append((user_id, text))

    async def iter_message_content(self, message_id: str) -> AsyncIterator[bytes]:
        half = len(self.content) // 2
        yield self.content[:half]
        yield self.content[half:]


@dataclass
class FakeSheetsClient(SheetsClient):
    """In-memory spreadsheet with switchable failures."""

    rows: list[list[str]] = field(default_factory=list)
    appended: list[tuple[str, list[str]]] = field(default_factory=list)
    read_ranges: list[str] = field(default_factory=list)
    fail_reads: bool = False
    fail_appends: bool = False

    async def get_values(self, cell_range: str) -> list[list[str]]:
        self.read_ranges.append(cell_range)
        if self.fail_reads:
            raise RuntimeError("sheets unavailable")
        return [list(row) for row in self.rows]

    async def append_row(self, cell_range: str, row: list[str]) -> None:
        if self.fail_appends:
            raise RuntimeError("append rejected")
        self.appended.append((cell_range, row))
        self.rows.append(row)


@dataclass
class FakeStorage(ArtifactStorage):
    """Records stored objects and returns fake links."""

    objects: dict[str, tuple[bytes, str]] = field(default_factory=dict)
    fail: bool = False

    async def store(self, name: str, content: bytes, mime_type: str) -> str:
        if self.fail:
            raise RuntimeError("storage unavailable")
        self.objects[name] = (content, mime_type)
        return f"https://storage.test/{name}"


@dataclass
class FailingIngestor(ArtifactIngestor):
    """Ingestor that always fails."""

    calls: int = 0

    async def ingest(self, content: AsyncIterator[bytes], user_id: str) -> str:
        self.calls += 1
        raise RuntimeError("download failed")


@dataclass
class SlowIngestor(ArtifactIngestor):
    """Ingestor that yields to the event loop before returning."""

    delay: float = 0.01
    calls: int = 0

    async def ingest(self, content: AsyncIterator[bytes], user_id: str) -> str:
        self.calls += 1
        await asyncio.sleep(self.delay)
        return f"ref-{user_id}-{self.calls}"


@dataclass
class FakeTokenProvider(AccessTokenProvider):
    """Token provider returning a static token."""

    token: str = "access-token"

    async def get_token(self) -> str:
        return self.token


def signed_post_kwargs(payload: dict[str, object]) -> dict[str, object]:
    """Build TestClient kwargs for a correctly signed webhook delivery."""
    body = json.dumps(payload).encode("utf-8")
    return {
        "content": body,
        "headers": {
            "Content-Type": "application/json",
            "X-Line-Signature": compute_signature(CHANNEL_SECRET, body),
        },
    }


def text_event(user_id: str, text: str, reply_token: str = "reply-token") -> dict:
    return {
        "type": "message",
        "replyToken": reply_token,
        "source": {"type": "user", "userId": user_id},
        "message": {"id": "m-text", "type": "text", "text": text},
    }


def image_event(user_id: str, message_id: str = "m-image") -> dict:
    return {
        "type": "message",
        "replyToken": "reply-image",
        "source": {"type": "user", "userId": user_id},
        "message": {"id": message_id, "type": "image"},
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        line_channel_access_token="line-token",
        line_channel_secret=CHANNEL_SECRET,
        google_service_account_json=json.dumps(
            {"client_email": "bot@example.iam.gserviceaccount.com", "private_key": "k"}
        ),
        google_sheets_id="sheet-id",
        environment="test",
    )


@pytest.fixture
def line_client() -> FakeLineClient:
    return FakeLineClient()


@pytest.fixture
def sheets_client() -> FakeSheetsClient:
    return FakeSheetsClient()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def engine(
    line_client: FakeLineClient,
    sheets_client: FakeSheetsClient,
    session_store: InMemorySessionStore,
) -> ConversationEngine:
    return ConversationEngine(
        session_store=session_store,
        duplicate_checker=DuplicateChecker(sheets_client),
        artifact_ingestor=InlineArtifactIngestor(),
        record_writer=RecordWriter(sheets_client),
        line_client=line_client,
        trigger_keywords=frozenset({"驗證", "認證"}),
    )


@pytest.fixture
def container(
    settings: Settings,
    line_client: FakeLineClient,
    engine: ConversationEngine,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        line_client=line_client,
        conversation_engine=engine,
        close_resources=close_resources,
    )

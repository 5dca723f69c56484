"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from verification_bot.adapters.drive_client import HttpxDriveClient
from verification_bot.adapters.google_auth import (
    AccessTokenProvider,
    ServiceAccountTokenProvider,
)
from verification_bot.adapters.line_client import HttpxLineClient, LineClient
from verification_bot.adapters.sheets_client import HttpxSheetsClient
from verification_bot.adapters.supabase_storage import SupabaseArtifactStorage
from verification_bot.config import (
    ConfigurationError,
    Settings,
    parse_service_account_info,
    parse_trigger_keywords,
)
from verification_bot.services.artifacts import (
    ArtifactIngestor,
    InlineArtifactIngestor,
    UploadArtifactIngestor,
)
from verification_bot.services.conversation import ConversationEngine
from verification_bot.services.members import DuplicateChecker
from verification_bot.services.records import RecordWriter
from verification_bot.services.session_store import InMemorySessionStore

ARTIFACT_BACKENDS = ("inline", "drive", "supabase")


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    line_client: LineClient
    conversation_engine: ConversationEngine
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container.

    Raises ConfigurationError when credentials or backend settings are
    missing or malformed.
    """
    resolved_settings = settings or Settings()
    token_provider = ServiceAccountTokenProvider.from_info(
        parse_service_account_info(resolved_settings.google_service_account_json)
    )
    artifact_ingestor, close_storage = _build_artifact_ingestor(
        resolved_settings, token_provider
    )
    sheets_client = HttpxSheetsClient.create(
        resolved_settings.google_sheets_id, token_provider
    )
    line_client = HttpxLineClient.create(resolved_settings.line_channel_access_token)
    conversation_engine = ConversationEngine(
        session_store=InMemorySessionStore(
            idle_timeout_seconds=resolved_settings.session_idle_timeout_seconds
        ),
        duplicate_checker=DuplicateChecker(
            sheets_client, sheet_name=resolved_settings.sheet_name
        ),
        artifact_ingestor=artifact_ingestor,
        record_writer=RecordWriter(
            sheets_client, sheet_name=resolved_settings.sheet_name
        ),
        line_client=line_client,
        trigger_keywords=parse_trigger_keywords(resolved_settings.trigger_keywords),
        debug_errors=resolved_settings.environment == "local",
    )

    async def close_resources() -> None:
        await line_client.close()
        await sheets_client.close()
        await close_storage()

    return AppContainer(
        settings=resolved_settings,
        line_client=line_client,
        conversation_engine=conversation_engine,
        close_resources=close_resources,
    )


def _build_artifact_ingestor(
    settings: Settings, token_provider: AccessTokenProvider
) -> tuple[ArtifactIngestor, Callable[[], Awaitable[None]]]:
    backend = settings.artifact_backend.strip().lower()
    if backend not in ARTIFACT_BACKENDS:
        raise ConfigurationError(
            f"ARTIFACT_BACKEND must be one of {', '.join(ARTIFACT_BACKENDS)}"
        )

    async def close_nothing() -> None:
        return None

    if backend == "inline":
        return InlineArtifactIngestor(), close_nothing

    if backend == "drive":
        if not settings.google_drive_folder_id:
            raise ConfigurationError("GOOGLE_DRIVE_FOLDER_ID is required for drive")
        drive_client = HttpxDriveClient.create(
            settings.google_drive_folder_id, token_provider
        )
        return UploadArtifactIngestor(storage=drive_client), drive_client.close

    if not settings.supabase_url or not settings.supabase_service_key:
        raise ConfigurationError(
            "SUPABASE_URL and SUPABASE_SERVICE_KEY are required for supabase"
        )
    supabase_client = create_client(
        settings.supabase_url, settings.supabase_service_key
    )
    storage = SupabaseArtifactStorage(
        client=supabase_client,
        bucket=settings.supabase_bucket,
        folder=settings.supabase_folder,
    )
    return UploadArtifactIngestor(storage=storage), close_nothing

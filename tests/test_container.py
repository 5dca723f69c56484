"""Tests for container wiring."""

import asyncio
import logging

import pytest

from verification_bot.adapters.drive_client import HttpxDriveClient
from verification_bot.adapters.google_auth import ServiceAccountTokenProvider
from verification_bot.api.app import build_app
from verification_bot.app_logging import configure_logging
from verification_bot.config import ConfigurationError, Settings
from verification_bot.containers import build_container
from verification_bot.services.artifacts import (
    InlineArtifactIngestor,
    UploadArtifactIngestor,
)
from tests.conftest import FakeTokenProvider


@pytest.fixture(autouse=True)
def _fake_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        ServiceAccountTokenProvider,
        "from_info",
        classmethod(lambda cls, info, scopes=(): FakeTokenProvider()),
    )


def test_build_container_defaults_to_inline(settings: Settings) -> None:
    container = build_container(settings)

    engine = container.conversation_engine
    assert isinstance(engine.artifact_ingestor, InlineArtifactIngestor)
    assert engine.trigger_keywords == frozenset({"驗證", "認證"})
    assert engine.debug_errors is False
    asyncio.run(container.close_resources())


def test_build_container_with_drive_backend(settings: Settings) -> None:
    settings.artifact_backend = "drive"
    settings.google_drive_folder_id = "folder-1"

    container = build_container(settings)

    ingestor = container.conversation_engine.artifact_ingestor
    assert isinstance(ingestor, UploadArtifactIngestor)
    assert isinstance(ingestor.storage, HttpxDriveClient)
    assert ingestor.storage.folder_id == "folder-1"
    asyncio.run(container.close_resources())


@pytest.mark.parametrize(
    "overrides",
    [
        {"artifact_backend": "ftp"},
        {"artifact_backend": "drive"},
        {"artifact_backend": "supabase"},
        {"google_service_account_json": "{broken"},
    ],
)
def test_build_container_rejects_incomplete_config(
    settings: Settings, overrides: dict[str, str]
) -> None:
    for key, value in overrides.items():
        setattr(settings, key, value)

    with pytest.raises(ConfigurationError):
        build_container(settings)


def test_build_app_applies_configured_log_level(settings: Settings) -> None:
    settings.log_level = "debug"

    app = build_app(settings)

    assert logging.getLogger("verification_bot").level == logging.DEBUG
    asyncio.run(app.state.container.close_resources())
    configure_logging()


def test_build_app_reraises_configuration_errors(settings: Settings) -> None:
    settings.artifact_backend = "ftp"

    with pytest.raises(ConfigurationError):
        build_app(settings)

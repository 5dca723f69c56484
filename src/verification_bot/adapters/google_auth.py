"""Service-account access tokens for Google REST APIs."""

import asyncio
from dataclasses import dataclass
from typing import Protocol

from google.auth.transport.requests import Request
from google.oauth2 import service_account

from verification_bot.config import ConfigurationError

GOOGLE_SCOPES = (
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
)


class AccessTokenProvider(Protocol):
    """Interface for obtaining OAuth bearer tokens."""

    async def get_token(self) -> str:
        """Return a currently valid access token."""


@dataclass
class ServiceAccountTokenProvider(AccessTokenProvider):
    """Token provider backed by google-auth service account credentials."""

    credentials: service_account.Credentials

    @classmethod
    def from_info(
        cls, info: dict[str, object], scopes: tuple[str, ...] = GOOGLE_SCOPES
    ) -> "ServiceAccountTokenProvider":
        """Build credentials from parsed service account JSON."""
        try:
            credentials = service_account.Credentials.from_service_account_info(
                info, scopes=list(scopes)
            )
        except ValueError as exc:
            raise ConfigurationError(
                "Google service account credentials are malformed"
            ) from exc
        return cls(credentials=credentials)

    async def get_token(self) -> str:
        """Refresh the credentials off the event loop when expired."""
        if not self.credentials.valid:
            await asyncio.to_thread(self.credentials.refresh, Request())
        return self.credentials.token

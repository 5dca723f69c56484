"""Google Sheets API client."""

from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx

from verification_bot.adapters.google_auth import AccessTokenProvider

SHEETS_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"


class SheetsClient(Protocol):
    """Interface for spreadsheet reads and appends."""

    async def get_values(self, cell_range: str) -> list[list[str]]:
        """Return the rows of a range as lists of cell strings."""

    async def append_row(self, cell_range: str, row: list[str]) -> None:
        """Append a single row after the last row of a range."""


@dataclass
class HttpxSheetsClient(SheetsClient):
    """Sheets v4 REST client implemented with httpx."""

    spreadsheet_id: str
    token_provider: AccessTokenProvider
    http_client: httpx.AsyncClient
    base_url: str = SHEETS_BASE_URL

    @classmethod
    def create(
        cls, spreadsheet_id: str, token_provider: AccessTokenProvider
    ) -> "HttpxSheetsClient":
        """Create a Sheets client with a managed httpx session."""
        return cls(
            spreadsheet_id=spreadsheet_id,
            token_provider=token_provider,
            http_client=httpx.AsyncClient(),
        )

    async def get_values(self, cell_range: str) -> list[list[str]]:
        """Read a range using spreadsheets.values.get."""
        response = await self.http_client.get(
            self._values_url(cell_range),
            headers=await self._headers(),
            timeout=15,
        )
        response.raise_for_status()
        values = response.json().get("values") or []
        return [[str(cell) for cell in row] for row in values]

    async def append_row(self, cell_range: str, row: list[str]) -> None:
        """Append a row using spreadsheets.values.append."""
        response = await self.http_client.post(
            f"{self._values_url(cell_range)}:append",
            params={"valueInputOption": "USER_ENTERED"},
            json={"values": [row]},
            headers=await self._headers(),
            timeout=30,
        )
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _values_url(self, cell_range: str) -> str:
        return (
            f"{self.base_url}/{self.spreadsheet_id}/values/"
            f"{quote(cell_range, safe='!:')}"
        )

    async def _headers(self) -> dict[str, str]:
        token = await self.token_provider.get_token()
        return {"Authorization": f"Bearer {token}"}

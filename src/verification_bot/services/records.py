"""Append finalized verification records to the sheet."""

from dataclasses import dataclass

from verification_bot.adapters.sheets_client import SheetsClient

PENDING_REVIEW = "待審核"


@dataclass
class RecordWriter:
    """Writes one verification row per completed session."""

    sheets_client: SheetsClient
    sheet_name: str = "Sheet1"

    async def append(
        self, user_id: str, phone: str, handle: str, reference: str
    ) -> None:
        """Append ``[user_id, phone, handle, reference, pending]`` once."""
        await self.sheets_client.append_row(
            f"{self.sheet_name}!A:E",
            [user_id, phone, handle, reference, PENDING_REVIEW],
        )

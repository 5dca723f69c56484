"""Membership lookups against the verification sheet."""

import logging
from dataclasses import dataclass

from verification_bot.adapters.sheets_client import SheetsClient

logger = logging.getLogger(__name__)


@dataclass
class DuplicateChecker:
    """Answers whether a user already has a verification record."""

    sheets_client: SheetsClient
    sheet_name: str = "Sheet1"

    async def exists(self, user_id: str) -> bool:
        """Return true when the first column holds the user id.

        Read failures count as "not found" so an outage never blocks a
        new verification attempt.
        """
        try:
            rows = await self.sheets_client.get_values(f"{self.sheet_name}!A:A")
        except Exception:
            logger.warning(
                "Membership lookup failed; treating user as new",
                extra={"user_id": user_id},
                exc_info=True,
            )
            return False
        return any(row and row[0] == user_id for row in rows)

"""Domain models for verification sessions."""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


class SessionState(str, Enum):
    """Steps of an in-progress verification conversation."""

    AWAITING_PHONE = "AWAITING_PHONE"
    AWAITING_HANDLE = "AWAITING_HANDLE"
    AWAITING_IMAGE = "AWAITING_IMAGE"


@dataclass(frozen=True)
class AwaitingPhone:
    """Verification started; the phone number is expected next."""

    user_id: str
    state: ClassVar[SessionState] = SessionState.AWAITING_PHONE


@dataclass(frozen=True)
class AwaitingHandle:
    """Phone number collected; the chat handle is expected next."""

    user_id: str
    phone: str
    state: ClassVar[SessionState] = SessionState.AWAITING_HANDLE


@dataclass(frozen=True)
class AwaitingImage:
    """Phone and handle collected; the profile screenshot is expected next."""

    user_id: str
    phone: str
    handle: str
    state: ClassVar[SessionState] = SessionState.AWAITING_IMAGE


Session = AwaitingPhone | AwaitingHandle | AwaitingImage

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional, Sequence

Role = Literal["user", "assistant", "system", "error", "warning"]
Rating = Literal["up", "down"]
AlertLevel = Literal["info", "success", "warning", "error"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Turn:
    role: Role
    content: str
    session_ref: Optional[str] = None
    legal_references: Sequence[str] = ()
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class ChatReply:
    """Normalized result of one conversational exchange."""

    text: str
    session_ref: Optional[str]
    legal_references: Sequence[str] = ()


@dataclass(frozen=True, slots=True)
class FeedbackSubmission:
    session_ref: str
    rating: Rating
    comment: Optional[str]
    content: str


@dataclass(frozen=True, slots=True)
class Approver:
    name: str
    bar_id: str


@dataclass(frozen=True, slots=True)
class Alert:
    """A user-visible notice outside the conversation thread."""

    level: AlertLevel
    text: str
    timestamp: datetime = field(default_factory=utc_now)

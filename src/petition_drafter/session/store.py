from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

from petition_drafter.client.schemas import CaseTemplate, HealthStatus
from petition_drafter.core.drafts import Draft, DraftState, FinalizationResult
from petition_drafter.core.models import Alert, AlertLevel, Turn

logger = logging.getLogger(__name__)

TurnListener = Callable[[Turn], None]
AlertListener = Callable[[Alert], None]


class SessionStore:
    """
    Single owner of the mutable state of one active session.

    Turns are append-only. Drafts are replaced whole. Feedback editing state lives here, out of band
    from the turns, so that at most one comment editor can be open at a time.
    """

    def __init__(self) -> None:
        self._turns: List[Turn] = []
        self._alerts: List[Alert] = []
        self._turn_listeners: List[TurnListener] = []
        self._alert_listeners: List[AlertListener] = []
        self._notice_handle: Optional[asyncio.TimerHandle] = None

        self.session_ref: Optional[str] = None
        self.input_buffer: str = ""
        self.chat_busy: bool = False

        self.draft: Optional[Draft] = None
        self.draft_state: DraftState = "empty"
        self.finalization: Optional[FinalizationResult] = None

        self.health: Optional[HealthStatus] = None
        self.templates: Tuple[CaseTemplate, ...] = ()

        self.open_feedback_for: Optional[str] = None
        self.feedback_turn: Optional[Turn] = None
        self.feedback_comment: str = ""
        self.feedback_in_flight: bool = False
        self.notice: Optional[Alert] = None

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def alerts(self) -> Tuple[Alert, ...]:
        return tuple(self._alerts)

    @property
    def is_busy(self) -> bool:
        return self.chat_busy or self.draft_state in ("generating", "finalizing")

    def recent_turns(self, limit: int) -> Tuple[Turn, ...]:
        if limit <= 0:
            return ()
        return tuple(self._turns[-limit:])

    def find_turn(self, session_ref: str) -> Optional[Turn]:
        """Return the newest assistant turn carrying `session_ref`."""
        for turn in reversed(self._turns):
            if turn.role == "assistant" and turn.session_ref == session_ref:
                return turn
        return None

    def holds_rateable(self, turn: Turn) -> bool:
        """True when `turn` itself is an assistant turn of this session that carries a session ref."""
        if turn.role != "assistant" or not turn.session_ref:
            return False
        return any(existing is turn for existing in self._turns)

    def open_feedback_editor(self, turn: Turn) -> None:
        self.feedback_turn = turn
        self.open_feedback_for = turn.session_ref
        self.feedback_comment = ""

    def close_feedback_editor(self) -> None:
        self.feedback_turn = None
        self.open_feedback_for = None
        self.feedback_comment = ""

    def append(self, turn: Turn) -> Turn:
        self._turns.append(turn)
        logger.debug("Turn appended. role=%s count=%s", turn.role, len(self._turns))
        for listener in list(self._turn_listeners):
            listener(turn)
        return turn

    def adopt_session_ref(self, session_ref: Optional[str]) -> None:
        if self.session_ref is None and session_ref:
            self.session_ref = session_ref
            logger.info("Session reference assigned. session_ref=%s", session_ref)

    def replace_draft(self, draft: Draft) -> None:
        self.draft = draft
        self.finalization = None
        self.draft_state = "ready"

    def alert(self, level: AlertLevel, text: str) -> Alert:
        alert = Alert(level=level, text=text)
        self._alerts.append(alert)
        for listener in list(self._alert_listeners):
            listener(alert)
        return alert

    def show_notice(self, text: str, *, seconds: float, level: AlertLevel = "success") -> Alert:
        """Show a transient notice that clears itself after `seconds`. Requires a running loop."""
        if self._notice_handle is not None:
            self._notice_handle.cancel()
        notice = Alert(level=level, text=text)
        self.notice = notice
        self._notice_handle = asyncio.get_running_loop().call_later(seconds, self._expire_notice, notice)
        return notice

    def _expire_notice(self, notice: Alert) -> None:
        if self.notice is notice:
            self.notice = None
            self._notice_handle = None

    def on_append(self, listener: TurnListener) -> Callable[[], None]:
        self._turn_listeners.append(listener)
        return lambda: self._turn_listeners.remove(listener)

    def on_alert(self, listener: AlertListener) -> Callable[[], None]:
        self._alert_listeners.append(listener)
        return lambda: self._alert_listeners.remove(listener)

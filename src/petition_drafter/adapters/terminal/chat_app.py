from __future__ import annotations

import logging
from typing import Optional, Union

from petition_drafter.adapters.terminal.background import PendingWork
from petition_drafter.adapters.terminal.console import read_stdin_line, write_stdout
from petition_drafter.adapters.terminal.interfaces import LineReader, LineWriter
from petition_drafter.adapters.terminal.render import format_alert, format_turn
from petition_drafter.core.models import Rating, Turn
from petition_drafter.session.workspace import PetitionChatSession

logger = logging.getLogger(__name__)

WELCOME_TEXT = (
    "Legal Petition Drafter\n"
    "Describe your legal case and a formal petition will be drafted for you.\n"
    "Type :help for commands."
)
HELP_TEXT = (
    "Commands:\n"
    "  :up [ref]         rate the latest (or given) petition as good\n"
    "  :down [ref]       open the comment editor; run again to submit\n"
    "  :comment <text>   set the feedback comment\n"
    "  :cancel           close the comment editor\n"
    "  :save             save the conversation to a text file\n"
    "  :quit             exit"
)


class PetitionChatApp:
    """
    Terminal view of the free-form petition chat.

    Requests run in the background so input keeps being read; a line sent while a petition
    is still being drafted is ignored by the conversation controller.
    """

    def __init__(
        self,
        *,
        session: PetitionChatSession,
        read_line: LineReader = read_stdin_line,
        write: LineWriter = write_stdout,
    ) -> None:
        self._session = session
        self._read_line = read_line
        self._write = write
        self._pending = PendingWork()
        session.store.on_append(self._on_turn)
        session.store.on_alert(lambda alert: self._write(format_alert(alert)))

    def _on_turn(self, turn: Turn) -> None:
        if turn.role == "user":
            return
        self._write(format_turn(turn))
        if turn.role == "assistant" and turn.session_ref:
            self._write(f"(rate this petition with :up or :down, ref {turn.session_ref})")

    def _latest_petition(self) -> Optional[Turn]:
        for turn in reversed(self._session.store.turns):
            if turn.role == "assistant" and turn.session_ref:
                return turn
        return None

    async def wait_pending(self) -> None:
        await self._pending.drain()

    async def run(self) -> None:
        self._write(WELCOME_TEXT)
        while True:
            line = await self._read_line("> ")
            if line is None:
                break
            if not await self.handle_line(line):
                break
        await self.wait_pending()
        logger.info("Petition chat ended. turns=%s", len(self._session.store.turns))

    async def _rate(self, target: Union[Turn, str], rating: Rating) -> None:
        feedback = self._session.feedback
        await feedback.rate(target, rating)
        ref = target.session_ref if isinstance(target, Turn) else target
        if feedback.open_for == ref:
            self._write("What could be improved? Use :comment <text>, then :down to submit or :cancel.")
        notice = self._session.store.notice
        if notice is not None:
            self._write(format_alert(notice))

    def _save(self) -> None:
        store = self._session.store
        if not store.turns:
            self._write("Nothing to save yet.")
            return
        try:
            path = self._session.save_transcript()
        except OSError as exc:
            logger.exception("Failed to save conversation transcript.")
            store.alert("error", f"Error saving conversation: {exc}")
            return
        self._write(f"Saved conversation to {path}")

    async def handle_line(self, line: str) -> bool:
        """Handle one input line; returns False when the user asked to quit."""
        stripped = line.strip()
        if not stripped.startswith(":"):
            if stripped and not self._session.conversation.busy:
                self._write("Drafting your petition...")
            self._pending.spawn(self._session.conversation.submit(line), name="chat-submit")
            return True

        command, _, arg = stripped[1:].partition(" ")
        arg = arg.strip()
        feedback = self._session.feedback
        if command in ("quit", "exit", "q"):
            return False
        if command == "help":
            self._write(HELP_TEXT)
        elif command in ("up", "down"):
            target: Optional[Union[Turn, str]] = arg or self._latest_petition()
            if target is None:
                self._write("Nothing to rate yet.")
                return True
            self._pending.spawn(self._rate(target, "up" if command == "up" else "down"), name="feedback-rate")
        elif command == "comment":
            if feedback.open_for is None:
                self._write("Open the comment editor with :down first.")
            else:
                feedback.set_comment(arg)
        elif command == "cancel":
            feedback.cancel()
        elif command == "save":
            self._save()
        else:
            self._write(f"Unknown command: {command}. Type :help for commands.")
        return True

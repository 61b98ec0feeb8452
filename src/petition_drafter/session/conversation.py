from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from petition_drafter.client.interfaces import DraftingClient
from petition_drafter.core.models import ChatReply, Role, Turn
from petition_drafter.errors import TransportError
from petition_drafter.session.store import SessionStore

logger = logging.getLogger(__name__)


class ChatExchange(Protocol):
    """One request/response round trip of a conversation variant."""

    @property
    def name(self) -> str: ...

    @property
    def error_role(self) -> Role: ...

    @property
    def error_text(self) -> str: ...

    async def send(self, *, message: str, history: Sequence[Turn], session_ref: Optional[str]) -> ChatReply:
        ...


@dataclass(frozen=True, slots=True)
class PetitionExchange:
    """Free-form petition chat: the backend sees the message plus recent history."""

    client: DraftingClient
    name: str = "petition"
    error_role: Role = "assistant"
    error_text: str = "Sorry, there was an error generating your petition. Please try again."

    async def send(self, *, message: str, history: Sequence[Turn], session_ref: Optional[str]) -> ChatReply:
        reply = await self.client.generate_petition(message=message, history=history, conversation_id=session_ref)
        return ChatReply(
            text=reply.petition_text,
            session_ref=reply.conversation_id,
            legal_references=reply.legal_context,
        )


@dataclass(frozen=True, slots=True)
class AssistantExchange:
    """Drafting workspace chat: context is kept server-side under the session id."""

    client: DraftingClient
    name: str = "assistant"
    error_role: Role = "error"
    error_text: str = "Failed to get response. Please try again."

    async def send(self, *, message: str, history: Sequence[Turn], session_ref: Optional[str]) -> ChatReply:
        reply = await self.client.chat(message=message, session_id=session_ref)
        return ChatReply(text=reply.response, session_ref=reply.session_id)


class ConversationController:
    """
    Turns submitted text into one backend exchange and appends the outcome to the session.

    Single-flight: while an exchange is outstanding, further submissions are ignored. Failures are
    converted into a fixed error turn and never reach the caller.
    """

    def __init__(self, *, store: SessionStore, exchange: ChatExchange, history_window: int = 10) -> None:
        self._store = store
        self._exchange = exchange
        self._history_window = history_window

    @property
    def busy(self) -> bool:
        return self._store.chat_busy

    def set_input(self, text: str) -> None:
        self._store.input_buffer = text

    async def submit(self, text: Optional[str] = None) -> None:
        if text is None:
            text = self._store.input_buffer
        if not text.strip() or self._store.chat_busy:
            return

        history = self._store.recent_turns(self._history_window)
        self._store.append(Turn(role="user", content=text))
        self._store.input_buffer = ""
        self._store.chat_busy = True
        try:
            self._store.append(await self._reply_turn(text, history))
        finally:
            self._store.chat_busy = False

    async def _reply_turn(self, text: str, history: Sequence[Turn]) -> Turn:
        started = time.perf_counter()
        try:
            reply = await self._exchange.send(message=text, history=history, session_ref=self._store.session_ref)
        except TransportError as exc:
            logger.warning(
                "Chat exchange failed. exchange=%s status=%s error=%s",
                self._exchange.name,
                exc.status,
                exc,
            )
            return self._error_turn()
        except Exception:
            logger.exception("Unexpected error during chat exchange. exchange=%s", self._exchange.name)
            return self._error_turn()
        finally:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            logger.info(
                "Chat exchange finished. exchange=%s history_turns=%s latency_ms=%s",
                self._exchange.name,
                len(history),
                elapsed_ms,
            )

        self._store.adopt_session_ref(reply.session_ref)
        return Turn(
            role="assistant",
            content=reply.text,
            session_ref=reply.session_ref,
            legal_references=tuple(reply.legal_references),
        )

    def _error_turn(self) -> Turn:
        return Turn(role=self._exchange.error_role, content=self._exchange.error_text)

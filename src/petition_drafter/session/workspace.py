from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Optional

from petition_drafter.client.interfaces import DraftingClient
from petition_drafter.config.models import SessionSettings
from petition_drafter.core.drafts import CaseData
from petition_drafter.session.conversation import AssistantExchange, ConversationController, PetitionExchange
from petition_drafter.session.drafts import DraftLifecycleController
from petition_drafter.session.export import DocumentSink, save_transcript
from petition_drafter.session.feedback import FeedbackController
from petition_drafter.session.prefetch import Prefetcher
from petition_drafter.session.store import SessionStore


@dataclass(frozen=True, slots=True)
class PetitionChatSession:
    """Free-form chat that accumulates a petition turn by turn."""

    store: SessionStore
    conversation: ConversationController
    feedback: FeedbackController
    sink: DocumentSink

    @classmethod
    def create(cls, *, client: DraftingClient, settings: SessionSettings, sink: DocumentSink) -> "PetitionChatSession":
        store = SessionStore()
        return cls(
            store=store,
            conversation=ConversationController(
                store=store,
                exchange=PetitionExchange(client=client),
                history_window=settings.history_window,
            ),
            feedback=FeedbackController(store=store, client=client, notice_seconds=settings.feedback_notice_seconds),
            sink=sink,
        )

    def save_transcript(self, *, day: Optional[date] = None) -> Path:
        return save_transcript(self.store.turns, self.sink, day=day)


@dataclass(frozen=True, slots=True)
class DraftWorkspace:
    """Structured case form, assistant chat and a single petition draft."""

    store: SessionStore
    conversation: ConversationController
    drafts: DraftLifecycleController
    feedback: FeedbackController
    prefetcher: Prefetcher
    settings: SessionSettings

    @classmethod
    def create(cls, *, client: DraftingClient, settings: SessionSettings, sink: DocumentSink) -> "DraftWorkspace":
        store = SessionStore()
        return cls(
            store=store,
            conversation=ConversationController(
                store=store,
                exchange=AssistantExchange(client=client),
                history_window=settings.history_window,
            ),
            drafts=DraftLifecycleController(
                store=store,
                client=client,
                sink=sink,
                finalize_notes=settings.finalize_notes,
            ),
            feedback=FeedbackController(store=store, client=client, notice_seconds=settings.feedback_notice_seconds),
            prefetcher=Prefetcher(store=store, client=client),
            settings=settings,
        )

    def new_case(self, **fields: Any) -> CaseData:
        """Build case data, filling case type and jurisdiction from the session defaults."""
        fields.setdefault("case_type", self.settings.default_case_type)
        fields.setdefault("jurisdiction", self.settings.default_jurisdiction)
        return CaseData.model_validate(fields)

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from petition_drafter.client.schemas import AssistantReply, HealthStatus, PetitionReply, TemplateCatalog
from petition_drafter.core.drafts import CaseData, Draft, FinalizationResult
from petition_drafter.core.models import FeedbackSubmission, Turn


class DraftingClient(Protocol):
    """
    The drafting backend as seen by the session controllers.

    Every method either returns a fully validated result or raises TransportError.
    """

    async def generate_petition(
        self,
        *,
        message: str,
        history: Sequence[Turn],
        conversation_id: Optional[str],
    ) -> PetitionReply:
        """Free-form petition chat turn."""

    async def submit_feedback(self, submission: FeedbackSubmission) -> Any:
        """Record a human rating for a generated petition."""

    async def chat(self, *, message: str, session_id: Optional[str]) -> AssistantReply:
        """Assistant chat turn of the drafting workspace."""

    async def generate_draft(self, case: CaseData) -> Draft:
        """Generate a structured petition draft from case facts."""

    async def finalize_draft(
        self,
        *,
        draft_id: str,
        approver_name: str,
        approver_id: str,
        notes: str,
    ) -> FinalizationResult:
        """Mark a draft approved by a credentialed approver."""

    async def export_document(self, draft_id: str) -> bytes:
        """Return the rendered DOCX for a draft."""

    async def health_check(self) -> HealthStatus:
        """Return backend and dependency status."""

    async def list_templates(self) -> TemplateCatalog:
        """Return the available case templates."""

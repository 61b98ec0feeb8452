from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from petition_drafter.client.schemas import AssistantReply, HealthStatus, PetitionReply, TemplateCatalog
from petition_drafter.core.catalog import DEFAULT_CASE_TYPES
from petition_drafter.core.drafts import CaseData, Draft, FinalizationResult
from petition_drafter.core.models import FeedbackSubmission, Turn


def _stable_id(prefix: str, text: str) -> str:
    return f"{prefix}-{hashlib.sha256(text.encode('utf-8')).hexdigest()[:12]}"


@dataclass(frozen=True, slots=True)
class MockDraftingClient:
    """
    A deterministic drafting backend for offline runs of the terminal adapters.

    Identifiers are derived from the input text, so the same input always yields the same reply.
    """

    petition_text: str = (
        "IN THE COURT OF THE CIVIL JUDGE\n\n"
        "PETITION\n\n"
        "Mock petition text: this is a fixed reply used to exercise the client end-to-end."
    )
    legal_context: Sequence[str] = ("Mock reference: Section 42 of the Specific Relief Act, 1877.",)

    async def generate_petition(
        self,
        *,
        message: str,
        history: Sequence[Turn],
        conversation_id: Optional[str],
    ) -> PetitionReply:
        return PetitionReply(
            petition_text=self.petition_text,
            conversation_id=conversation_id or _stable_id("conv", message),
            legal_context=tuple(self.legal_context),
        )

    async def submit_feedback(self, submission: FeedbackSubmission) -> Any:
        return {"status": "recorded", "mock": True}

    async def chat(self, *, message: str, session_id: Optional[str]) -> AssistantReply:
        return AssistantReply(
            response=f"Mock assistant reply to: {message[:80]}",
            session_id=session_id or _stable_id("session", message),
        )

    async def generate_draft(self, case: CaseData) -> Draft:
        return Draft.model_validate(
            {
                "draft_id": _stable_id("draft", case.facts),
                "sections": [
                    {"section_name": "Title", "content": f"<p>{case.jurisdiction}</p>"},
                    {"title": "Facts", "content": f"<p>{case.facts}</p>"},
                    {"label": "Prayer", "text": f"<p>{case.prayers or 'Any other relief.'}</p>"},
                ],
                "validation": {
                    "overall_score": 0.92,
                    "checks": [
                        {"check_name": "citation_verification", "status": "pass", "message": "All citations found."},
                        {"check_name": "party_details", "status": "warn", "message": "Respondent address missing."},
                    ],
                },
                "provenance": [
                    {
                        "source_title": "Code of Civil Procedure, 1908",
                        "section": "Section 115",
                        "page_num": 1,
                        "similarity_score": 0.87,
                        "text_excerpt": "The High Court may call for the record of any case...",
                    }
                ],
                "coverage_score": 0.9,
                "template_version": f"{case.case_type}-mock",
                "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
            }
        )

    async def finalize_draft(
        self,
        *,
        draft_id: str,
        approver_name: str,
        approver_id: str,
        notes: str,
    ) -> FinalizationResult:
        return FinalizationResult(draft_id=draft_id, status="finalized")

    async def export_document(self, draft_id: str) -> bytes:
        return f"Mock document for {draft_id}".encode("utf-8")

    async def health_check(self) -> HealthStatus:
        return HealthStatus.model_validate({"status": "healthy", "openai": "mock", "pinecone": "mock"})

    async def list_templates(self) -> TemplateCatalog:
        return TemplateCatalog.model_validate(
            {"templates": [{"case_type": key, "name": name} for key, name in DEFAULT_CASE_TYPES.items()]}
        )

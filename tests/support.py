from __future__ import annotations

import asyncio
from collections import defaultdict, deque
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence, Tuple

from petition_drafter.client.schemas import AssistantReply, HealthStatus, PetitionReply, TemplateCatalog
from petition_drafter.core.drafts import CaseData, Draft, FinalizationResult
from petition_drafter.core.models import FeedbackSubmission, Turn


def draft_payload(draft_id: str = "draft-1", *, score: float = 0.92) -> dict[str, Any]:
    return {
        "draft_id": draft_id,
        "sections": [
            {"section_name": "Title", "content": "<h2>IN THE LAHORE HIGH COURT</h2>"},
            {"title": "Facts", "content": "<p>The petitioner inherited land.</p>"},
            {"content": "<p>Any other relief.</p>"},
        ],
        "validation": {
            "overall_score": score,
            "checks": [
                {"check_name": "citation_verification", "status": "pass", "message": "All citations found."},
                {"check_name": "party_details", "status": "warn", "message": "Respondent address missing."},
            ],
        },
        "provenance": [
            {
                "source_title": "Code of Civil Procedure, 1908",
                "section": "Section 115",
                "page_num": 42,
                "similarity_score": 0.87,
                "text_excerpt": "The High Court may call for the record of any case.",
            }
        ],
        "coverage_score": 0.9,
        "template_version": "civil_revision-v2",
        "created_at": "2024-05-01T10:00:00Z",
    }


def make_draft(draft_id: str = "draft-1", *, score: float = 0.92) -> Draft:
    return Draft.model_validate(draft_payload(draft_id, score=score))


def make_case(facts: str = "The petitioner inherited land in 2015.") -> CaseData:
    return CaseData(facts=facts)


class ScriptedDraftingClient:
    """
    Test double for the drafting backend.

    Each operation returns (or raises) its next scripted outcome. While `gate` is set to an
    unset event, every call blocks on it, which keeps requests in flight on demand.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.gate: Optional[asyncio.Event] = None
        self._outcomes: Dict[str, Deque[Any]] = defaultdict(deque)

    def script(self, operation: str, *outcomes: Any) -> None:
        self._outcomes[operation].extend(outcomes)

    def calls_for(self, operation: str) -> List[Dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == operation]

    async def _next(self, operation: str, **kwargs: Any) -> Any:
        self.calls.append((operation, kwargs))
        if self.gate is not None:
            await self.gate.wait()
        if not self._outcomes[operation]:
            raise AssertionError(f"No scripted outcome for {operation}")
        outcome = self._outcomes[operation].popleft()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def generate_petition(
        self, *, message: str, history: Sequence[Turn], conversation_id: Optional[str]
    ) -> PetitionReply:
        return await self._next(
            "generate_petition", message=message, history=tuple(history), conversation_id=conversation_id
        )

    async def submit_feedback(self, submission: FeedbackSubmission) -> Any:
        return await self._next("submit_feedback", submission=submission)

    async def chat(self, *, message: str, session_id: Optional[str]) -> AssistantReply:
        return await self._next("chat", message=message, session_id=session_id)

    async def generate_draft(self, case: CaseData) -> Draft:
        return await self._next("generate_draft", case=case)

    async def finalize_draft(
        self, *, draft_id: str, approver_name: str, approver_id: str, notes: str
    ) -> FinalizationResult:
        return await self._next(
            "finalize_draft", draft_id=draft_id, approver_name=approver_name, approver_id=approver_id, notes=notes
        )

    async def export_document(self, draft_id: str) -> bytes:
        return await self._next("export_document", draft_id=draft_id)

    async def health_check(self) -> HealthStatus:
        return await self._next("health_check")

    async def list_templates(self) -> TemplateCatalog:
        return await self._next("list_templates")


async def wait_until(predicate: Callable[[], bool], *, max_spins: int = 100) -> None:
    for _ in range(max_spins):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("Condition not reached")

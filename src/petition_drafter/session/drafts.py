from __future__ import annotations

import logging
from typing import Optional

from petition_drafter.client.interfaces import DraftingClient
from petition_drafter.core.drafts import CaseData, Draft, DraftState, FinalizationResult, ScoreTier
from petition_drafter.core.models import Approver, Turn
from petition_drafter.errors import TransportError, ValidationFailure
from petition_drafter.session.export import DocumentSink, document_filename
from petition_drafter.session.store import SessionStore

logger = logging.getLogger(__name__)

GENERATING_TEXT = "Generating petition... This may take 30-60 seconds."
GENERATED_TEXT = "Petition draft generated successfully! Review the draft and validation results below."


def _describe(exc: BaseException) -> str:
    if isinstance(exc, TransportError) and exc.detail:
        return exc.detail
    return str(exc) or type(exc).__name__


def _check_case(case: CaseData) -> None:
    if not case.facts.strip():
        raise ValidationFailure("Please provide case facts before generating petition")


class DraftLifecycleController:
    """
    Drives a petition draft through empty -> generating -> ready -> finalizing -> finalized.

    Preconditions are checked before any request is sent. A failed generation restores the
    previous state and keeps the previous draft; a failed finalization returns to ready.
    """

    def __init__(
        self,
        *,
        store: SessionStore,
        client: DraftingClient,
        sink: DocumentSink,
        finalize_notes: str = "Approved for filing",
    ) -> None:
        self._store = store
        self._client = client
        self._sink = sink
        self._finalize_notes = finalize_notes

    @property
    def state(self) -> DraftState:
        return self._store.draft_state

    @property
    def draft(self) -> Optional[Draft]:
        return self._store.draft

    @property
    def tier(self) -> Optional[ScoreTier]:
        draft = self._store.draft
        return draft.tier if draft is not None else None

    async def generate(self, case: CaseData) -> Optional[Draft]:
        if self._store.draft_state in ("generating", "finalizing"):
            logger.info("Draft generation ignored while busy. state=%s", self._store.draft_state)
            return None
        try:
            _check_case(case)
        except ValidationFailure as exc:
            self._store.alert("warning", str(exc))
            return None

        previous_state = self._store.draft_state
        self._store.draft_state = "generating"
        self._store.append(Turn(role="system", content=GENERATING_TEXT))
        try:
            draft = await self._client.generate_draft(case)
        except Exception as exc:
            self._store.draft_state = previous_state
            if isinstance(exc, TransportError):
                logger.warning("Draft generation failed. case_type=%s error=%s", case.case_type, exc)
            else:
                logger.exception("Unexpected error during draft generation. case_type=%s", case.case_type)
            self._store.append(Turn(role="error", content=f"Error generating petition: {_describe(exc)}"))
            return None

        self._store.replace_draft(draft)
        logger.info(
            "Draft generated. draft_id=%s sections=%s overall_score=%s",
            draft.draft_id,
            len(draft.sections),
            draft.validation.overall_score,
        )
        self._store.append(Turn(role="system", content=GENERATED_TEXT))
        return draft

    def _check_can_finalize(self, draft_id: str, approver: Approver) -> None:
        draft = self._store.draft
        if draft is None or draft.draft_id != draft_id:
            raise ValidationFailure(f"No draft {draft_id} to finalize")
        if self._store.draft_state != "ready":
            raise ValidationFailure(f"Draft cannot be finalized while {self._store.draft_state}")
        if not approver.name.strip() or not approver.bar_id.strip():
            raise ValidationFailure("Approver details required")

    async def finalize(self, draft_id: str, approver: Approver) -> Optional[FinalizationResult]:
        try:
            self._check_can_finalize(draft_id, approver)
        except ValidationFailure as exc:
            self._store.alert("warning", str(exc))
            return None

        name = approver.name.strip()
        bar_id = approver.bar_id.strip()
        self._store.draft_state = "finalizing"
        try:
            result = await self._client.finalize_draft(
                draft_id=draft_id,
                approver_name=name,
                approver_id=bar_id,
                notes=self._finalize_notes,
            )
        except Exception as exc:
            self._store.draft_state = "ready"
            if isinstance(exc, TransportError):
                logger.warning("Draft finalization failed. draft_id=%s error=%s", draft_id, exc)
            else:
                logger.exception("Unexpected error during draft finalization. draft_id=%s", draft_id)
            self._store.alert("error", f"Error: {_describe(exc)}")
            return None

        self._store.draft_state = "finalized"
        self._store.finalization = result
        logger.info("Draft finalized. draft_id=%s status=%s", result.draft_id, result.status)
        self._store.alert(
            "success",
            f"Petition finalized successfully!\nDraft ID: {result.draft_id}\nStatus: {result.status}",
        )
        self._store.append(Turn(role="system", content=f"Petition finalized by {name} ({bar_id})"))
        return result

    async def export_document(self, draft_id: str) -> Optional[bytes]:
        draft = self._store.draft
        if draft is None or draft.draft_id != draft_id:
            self._store.alert("warning", f"No draft {draft_id} to download")
            return None

        try:
            content = await self._client.export_document(draft_id)
        except Exception as exc:
            if isinstance(exc, TransportError):
                logger.warning("Document export failed. draft_id=%s error=%s", draft_id, exc)
            else:
                logger.exception("Unexpected error during document export. draft_id=%s", draft_id)
            self._store.alert("error", f"Error downloading DOCX: {_describe(exc)}")
            return None

        try:
            path = self._sink.save(document_filename(draft_id), content)
        except OSError as exc:
            logger.exception("Failed to save exported document. draft_id=%s", draft_id)
            self._store.alert("error", f"Error saving DOCX: {exc}")
            return None

        self._store.alert("success", f"Petition document saved to {path}")
        return content

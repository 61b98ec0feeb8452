from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional, Sequence, Type, TypeVar
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel, ValidationError

from petition_drafter.client.schemas import AssistantReply, HealthStatus, PetitionReply, TemplateCatalog
from petition_drafter.config.models import BackendSettings
from petition_drafter.core.drafts import CaseData, Draft, FinalizationResult
from petition_drafter.core.models import FeedbackSubmission, Turn
from petition_drafter.errors import ResponseFormatError, TransportError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    ConnectionResetError,
)

_FALLBACK_DETAILS = {
    "generate_petition": "Failed to generate petition",
    "submit_feedback": "Failed to submit feedback",
    "chat": "Chat failed",
    "generate_draft": "Failed to generate petition",
    "finalize_draft": "Failed to finalize",
    "export_document": "Failed to download DOCX",
    "health_check": "Health check failed",
    "list_templates": "Failed to get templates",
}


def _serialize_turn(turn: Turn) -> dict[str, Any]:
    payload: dict[str, Any] = {"role": turn.role, "content": turn.content}
    if turn.session_ref is not None:
        payload["conversation_id"] = turn.session_ref
    if turn.legal_references:
        payload["legal_context"] = list(turn.legal_references)
    return payload


def _error_detail(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    detail = payload.get("detail") or payload.get("error")
    if isinstance(detail, str) and detail.strip():
        return detail.strip()
    if isinstance(detail, list):
        # FastAPI request validation errors
        messages = [str(item.get("msg")) for item in detail if isinstance(item, dict) and item.get("msg")]
        if messages:
            return "; ".join(messages)
    return None


async def _read_json(response: aiohttp.ClientResponse) -> Any:
    try:
        return await response.json(content_type=None)
    except ValueError:
        return None


def _parse(model: Type[M], payload: Any, operation: str) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Backend returned an unexpected payload. operation=%s errors=%s", operation, exc.error_count())
        raise ResponseFormatError(
            operation, detail=f"Unexpected response from drafting backend ({operation})"
        ) from exc


class HttpDraftingClient:
    """
    aiohttp implementation of the drafting backend contract.

    Use as an async context manager; a caller-provided session is never closed by this client.
    """

    def __init__(self, *, settings: BackendSettings, session: Optional[aiohttp.ClientSession] = None) -> None:
        self._settings = settings
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "HttpDraftingClient":
        if self._session is None:
            kwargs: dict[str, Any] = {}
            if self._settings.request_timeout_seconds is not None:
                kwargs["timeout"] = aiohttp.ClientTimeout(total=self._settings.request_timeout_seconds)
            self._session = aiohttp.ClientSession(**kwargs)
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def _root_url(self, path: str) -> str:
        return f"{self._settings.base_url.rstrip('/')}{path}"

    def _api_url(self, path: str) -> str:
        prefix = "/" + self._settings.api_prefix.strip("/") if self._settings.api_prefix.strip("/") else ""
        return self._root_url(f"{prefix}{path}")

    async def _exchange(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        as_bytes: bool = False,
        tolerate_error_status: bool = False,
    ) -> tuple[int, Any]:
        if self._session is None:
            raise RuntimeError("HttpDraftingClient must be entered with 'async with' before use.")

        started = time.perf_counter()
        try:
            async with self._session.request(method, url, json=json_body) as response:
                status = response.status
                ok = 200 <= status < 300
                if as_bytes and ok:
                    payload: Any = await response.read()
                else:
                    payload = await _read_json(response)
        except _TRANSPORT_ERRORS as exc:
            logger.warning(
                "Drafting backend unreachable. operation=%s url=%s error=%s",
                operation,
                url,
                type(exc).__name__,
            )
            raise TransportError(operation, detail=f"Cannot reach drafting backend ({type(exc).__name__})") from exc
        finally:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            logger.info("Backend call finished. operation=%s method=%s latency_ms=%s", operation, method, elapsed_ms)

        if not ok and not tolerate_error_status:
            logger.warning("Drafting backend rejected request. operation=%s status=%s", operation, status)
            raise TransportError(
                operation,
                status=status,
                detail=_error_detail(payload) or _FALLBACK_DETAILS.get(operation),
            )
        return status, payload

    async def generate_petition(
        self,
        *,
        message: str,
        history: Sequence[Turn],
        conversation_id: Optional[str],
    ) -> PetitionReply:
        body: dict[str, Any] = {
            "message": message,
            "conversation_history": [_serialize_turn(turn) for turn in history],
        }
        if conversation_id is not None:
            body["conversation_id"] = conversation_id
        _, payload = await self._exchange("generate_petition", "POST", self._root_url("/api/petition"), json_body=body)
        return _parse(PetitionReply, payload, "generate_petition")

    async def submit_feedback(self, submission: FeedbackSubmission) -> Any:
        body = {
            "conversation_id": submission.session_ref,
            "rating": submission.rating,
            "comment": submission.comment,
            "petition_text": submission.content,
        }
        _, payload = await self._exchange("submit_feedback", "POST", self._root_url("/api/feedback"), json_body=body)
        return payload

    async def chat(self, *, message: str, session_id: Optional[str]) -> AssistantReply:
        body = {"message": message, "session_id": session_id}
        _, payload = await self._exchange("chat", "POST", self._api_url("/chat"), json_body=body)
        return _parse(AssistantReply, payload, "chat")

    async def generate_draft(self, case: CaseData) -> Draft:
        _, payload = await self._exchange(
            "generate_draft",
            "POST",
            self._api_url("/petitions/generate"),
            json_body=case.model_dump(mode="json"),
        )
        return _parse(Draft, payload, "generate_draft")

    async def finalize_draft(
        self,
        *,
        draft_id: str,
        approver_name: str,
        approver_id: str,
        notes: str,
    ) -> FinalizationResult:
        body = {
            "draft_id": draft_id,
            "approver_name": approver_name,
            "approver_id": approver_id,
            "notes": notes,
        }
        _, payload = await self._exchange(
            "finalize_draft",
            "POST",
            self._api_url(f"/petitions/{quote(draft_id, safe='')}/finalize"),
            json_body=body,
        )
        return _parse(FinalizationResult, payload, "finalize_draft")

    async def export_document(self, draft_id: str) -> bytes:
        _, payload = await self._exchange(
            "export_document",
            "GET",
            self._api_url(f"/petitions/{quote(draft_id, safe='')}/docx"),
            as_bytes=True,
        )
        return payload

    async def health_check(self) -> HealthStatus:
        status, payload = await self._exchange(
            "health_check",
            "GET",
            self._api_url("/health"),
            tolerate_error_status=True,
        )
        if not isinstance(payload, dict):
            if 200 <= status < 300:
                raise ResponseFormatError("health_check", detail="Health response was not a JSON object")
            raise TransportError("health_check", status=status, detail=_FALLBACK_DETAILS["health_check"])
        if not 200 <= status < 300 and "status" not in payload:
            payload = {**payload, "status": "unhealthy"}
        return _parse(HealthStatus, payload, "health_check")

    async def list_templates(self) -> TemplateCatalog:
        _, payload = await self._exchange("list_templates", "GET", self._api_url("/templates"))
        return _parse(TemplateCatalog, payload, "list_templates")

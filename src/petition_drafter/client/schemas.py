"""Wire models for drafting backend responses, normalized once at ingestion."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class PetitionReply(BaseModel):
    model_config = ConfigDict(frozen=True)

    petition_text: str = Field(validation_alias=AliasChoices("petition", "petition_text", "petitionText"))
    conversation_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("conversation_id", "conversationId")
    )
    legal_context: Tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("legal_context", "legalContext")
    )

    @field_validator("legal_context", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value


class AssistantReply(BaseModel):
    model_config = ConfigDict(frozen=True)

    response: str
    session_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("session_id", "sessionId"))


class HealthStatus(BaseModel):
    """Backend health. Dependency states arrive as extra top-level fields."""

    model_config = ConfigDict(frozen=True, extra="allow")

    status: str = "unknown"

    @property
    def is_healthy(self) -> bool:
        return self.status == "healthy"

    @property
    def dependencies(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class CaseTemplate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    case_type: Optional[str] = None
    name: Optional[str] = None
    version: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_names(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"case_type": value}
        return value

    @property
    def label(self) -> str:
        return self.name or self.case_type or "unnamed template"


class TemplateCatalog(BaseModel):
    model_config = ConfigDict(frozen=True)

    templates: List[CaseTemplate] = Field(default_factory=list)

    @field_validator("templates", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

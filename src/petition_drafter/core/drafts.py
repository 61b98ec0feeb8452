from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DraftState = Literal["empty", "generating", "ready", "finalizing", "finalized"]
ScoreTier = Literal["pass", "warn", "fail"]
CheckStatus = Literal["pass", "warn", "fail"]

PASS_THRESHOLD = 0.90
WARN_THRESHOLD = 0.75


def classify_score(score: float) -> ScoreTier:
    """Map a validation score to its display tier. Both thresholds are inclusive lower bounds."""
    if score >= PASS_THRESHOLD:
        return "pass"
    if score >= WARN_THRESHOLD:
        return "warn"
    return "fail"


class Parties(BaseModel):
    model_config = ConfigDict(frozen=True)

    petitioner: str = ""
    respondent: str = ""


class CaseData(BaseModel):
    """Structured case facts submitted for draft generation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    case_type: str = "civil_revision"
    jurisdiction: str = "Lahore High Court"
    facts: str = ""
    parties: Parties = Field(default_factory=Parties)
    prayers: str = ""
    annexures: List[str] = Field(default_factory=list)


class DraftSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    content: str = ""


class ValidationCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(validation_alias=AliasChoices("check_name", "name"))
    status: CheckStatus
    message: str = ""


class ValidationReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_score: float = Field(ge=0.0, le=1.0)
    checks: Tuple[ValidationCheck, ...] = ()

    @property
    def tier(self) -> ScoreTier:
        return classify_score(self.overall_score)


class Citation(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_title: str = ""
    section: str = ""
    page_number: Optional[Union[int, str]] = Field(
        default=None, validation_alias=AliasChoices("page_num", "page_number")
    )
    similarity_score: float = Field(ge=0.0, le=1.0)
    excerpt: str = Field(default="", validation_alias=AliasChoices("text_excerpt", "excerpt"))


def _first_text(raw: dict[str, Any], keys: Tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def normalize_section(raw: Any, index: int) -> dict[str, str]:
    """Collapse the backend's interchangeable section fields onto title/content."""
    if isinstance(raw, DraftSection):
        return raw.model_dump()
    if not isinstance(raw, dict):
        raise ValueError(f"Section {index + 1} must be a mapping, got: {type(raw).__name__}")
    title = _first_text(raw, ("section_name", "title", "label")) or f"Section {index + 1}"
    content = _first_text(raw, ("content", "text")) or ""
    return {"title": title, "content": content}


class Draft(BaseModel):
    """A generated petition. Replaced wholesale on regeneration, never patched."""

    model_config = ConfigDict(frozen=True)

    draft_id: str = Field(min_length=1)
    sections: Tuple[DraftSection, ...] = ()
    validation: ValidationReport
    provenance: Tuple[Citation, ...] = ()
    coverage_score: float = Field(default=0.0, ge=0.0, le=1.0)
    template_version: str = ""
    created_at: datetime

    @field_validator("sections", mode="before")
    @classmethod
    def _normalize_sections(cls, value: Any) -> Any:
        if value is None:
            return ()
        if not isinstance(value, (list, tuple)):
            return value
        return [normalize_section(raw, i) for i, raw in enumerate(value)]

    @property
    def tier(self) -> ScoreTier:
        return self.validation.tier


class FinalizationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    draft_id: str
    status: str

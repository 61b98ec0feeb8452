from __future__ import annotations

from typing import Iterable, List, Optional

from petition_drafter.client.schemas import CaseTemplate, HealthStatus
from petition_drafter.core.catalog import DEFAULT_CASE_TYPES
from petition_drafter.core.drafts import Draft
from petition_drafter.core.markup import markup_to_text
from petition_drafter.core.models import Alert, Turn

REFERENCE_PREVIEW_CHARS = 200

_ROLE_LABELS = {
    "user": "You",
    "assistant": "Assistant",
    "system": "System",
    "error": "Error",
    "warning": "Warning",
}
_CHECK_MARKERS = {"pass": "[ok]", "warn": "[!]", "fail": "[x]"}


def format_percent(score: float, digits: int = 0) -> str:
    return f"{score * 100:.{digits}f}%"


def format_check_name(name: str) -> str:
    return name.replace("_", " ").upper()


def format_turn(turn: Turn) -> str:
    stamp = turn.timestamp.astimezone().strftime("%H:%M:%S")
    lines = [f"[{stamp}] {_ROLE_LABELS.get(turn.role, turn.role)}:", turn.content]
    if turn.legal_references:
        lines.append(f"Legal References ({len(turn.legal_references)}):")
        for i, reference in enumerate(turn.legal_references, 1):
            lines.append(f"  Reference {i}: {reference[:REFERENCE_PREVIEW_CHARS]}...")
    return "\n".join(lines)


def format_alert(alert: Alert) -> str:
    return f"[{alert.level.upper()}] {alert.text}"


def format_draft(draft: Draft) -> str:
    """Render a draft for the terminal. Section content is reduced to plain text first."""
    out: List[str] = []
    validation = draft.validation
    out.append(f"Validation Results: {format_percent(validation.overall_score)} ({draft.tier.upper()})")
    for check in validation.checks:
        out.append(f"  {_CHECK_MARKERS[check.status]} {format_check_name(check.name)}")
        if check.message:
            out.append(f"      {check.message}")

    for section in draft.sections:
        title = section.title.upper()
        out.extend(["", title, "=" * len(title), markup_to_text(section.content)])

    out.extend(["", f"Legal Sources & Citations ({len(draft.provenance)})"])
    for citation in draft.provenance:
        page = f"Page {citation.page_number}" if citation.page_number is not None else "Page -"
        out.append(f"  {citation.source_title}")
        out.append(f"    {citation.section} | {page} | Relevance: {format_percent(citation.similarity_score)}")
        if citation.excerpt:
            out.append(f'    "{citation.excerpt}"')

    out.extend(
        [
            "",
            f"Draft ID: {draft.draft_id}",
            f"Template: {draft.template_version}",
            f"Created: {draft.created_at.astimezone().strftime('%Y-%m-%d %H:%M:%S')}",
            f"Coverage: {format_percent(draft.coverage_score, 1)}",
        ]
    )
    return "\n".join(out)


def format_status(health: Optional[HealthStatus], templates: Iterable[CaseTemplate]) -> str:
    templates = list(templates)
    lines = ["System Status"]
    if health is None:
        lines.append("  Backend: unreachable")
    else:
        lines.append(f"  Backend: {'System Active' if health.is_healthy else 'System Issue'} ({health.status})")
        for name, state in sorted(health.dependencies.items()):
            lines.append(f"  {name}: {state}")
    lines.append(f"  Templates: {len(templates)} loaded")
    if templates:
        lines.extend(f"    - {template.label}" for template in templates)
    else:
        lines.extend(f"    - {name} ({key}, built-in)" for key, name in DEFAULT_CASE_TYPES.items())
    return "\n".join(lines)

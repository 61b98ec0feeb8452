from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional, Protocol, Sequence

from petition_drafter.core.models import Turn

logger = logging.getLogger(__name__)

TRANSCRIPT_SEPARATOR = "\n\n---\n\n"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class DocumentSink(Protocol):
    def save(self, filename: str, content: bytes) -> Path:
        """Persist a downloaded file and return where it was written."""


def _atomic_write_bytes(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_bytes(content)
    tmp_path.replace(path)


@dataclass(frozen=True, slots=True)
class DirectorySink:
    directory: Path

    def save(self, filename: str, content: bytes) -> Path:
        path = Path(self.directory) / filename
        _atomic_write_bytes(path, content)
        logger.info("File saved. path=%s bytes=%s", path, len(content))
        return path


def document_filename(draft_id: str) -> str:
    return f"petition_{_UNSAFE_FILENAME_CHARS.sub('_', draft_id)}.docx"


def transcript_filename(day: date) -> str:
    return f"petition_{day.isoformat()}.txt"


def format_transcript(turns: Sequence[Turn]) -> str:
    return TRANSCRIPT_SEPARATOR.join(f"{turn.role.upper()}: {turn.content}" for turn in turns)


def save_transcript(turns: Sequence[Turn], sink: DocumentSink, *, day: Optional[date] = None) -> Path:
    day = day or date.today()
    return sink.save(transcript_filename(day), format_transcript(turns).encode("utf-8"))

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from petition_drafter.adapters.terminal.background import PendingWork
from petition_drafter.adapters.terminal.console import read_stdin_line, write_stdout
from petition_drafter.adapters.terminal.interfaces import LineReader, LineWriter
from petition_drafter.adapters.terminal.render import format_alert, format_draft, format_status, format_turn
from petition_drafter.core.drafts import CaseData
from petition_drafter.core.models import Approver, Turn
from petition_drafter.session.workspace import DraftWorkspace

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Commands:\n"
    "  :generate <case.yaml>   generate a petition draft from a case file\n"
    "  :show                   show the current draft\n"
    "  :finalize               finalize the current draft (approver is prompted)\n"
    "  :export                 download the current draft as DOCX\n"
    "  :status                 show backend status and templates\n"
    "  :quit                   exit\n"
    "Any other text is sent to the legal assistant."
)


def read_case_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Case file not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Case file must be a mapping, got: {type(data).__name__}")
    return data


class DraftWorkspaceApp:
    """Terminal view of the drafting workspace: assistant chat, draft review, finalization and export."""

    def __init__(
        self,
        *,
        workspace: DraftWorkspace,
        read_line: LineReader = read_stdin_line,
        write: LineWriter = write_stdout,
    ) -> None:
        self._workspace = workspace
        self._read_line = read_line
        self._write = write
        self._pending = PendingWork()
        workspace.store.on_append(self._on_turn)
        workspace.store.on_alert(lambda alert: self._write(format_alert(alert)))

    def _on_turn(self, turn: Turn) -> None:
        if turn.role != "user":
            self._write(format_turn(turn))

    def load_case(self, path: Path, **overrides: Any) -> Optional[CaseData]:
        try:
            fields = read_case_file(path)
            fields.update({k: v for k, v in overrides.items() if v is not None})
            return self._workspace.new_case(**fields)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Failed to load case file. path=%s error=%s", path, exc)
            self._workspace.store.alert("warning", f"Could not load case file {path}: {exc}")
            return None

    async def prompt_approver(self) -> Approver:
        name = await self._read_line("Enter your name: ")
        bar_id = await self._read_line("Enter your Bar Council ID: ")
        return Approver(name=name or "", bar_id=bar_id or "")

    async def run_draft(
        self,
        case: CaseData,
        *,
        finalize: bool = False,
        approver: Optional[Approver] = None,
        export: bool = False,
    ) -> bool:
        """One pass of the structured workflow. Returns True when every requested step succeeded."""
        await self._workspace.prefetcher.run()
        drafts = self._workspace.drafts
        draft = await drafts.generate(case)
        if draft is None:
            return False
        self._write(format_draft(draft))

        if finalize:
            if approver is None:
                approver = await self.prompt_approver()
            if await drafts.finalize(draft.draft_id, approver) is None:
                return False
        if export and await drafts.export_document(draft.draft_id) is None:
            return False
        return True

    async def wait_pending(self) -> None:
        await self._pending.drain()

    async def run(self) -> None:
        self._workspace.prefetcher.start()
        self._write("Pakistani Legal Petition AI. Type :help for commands.")
        while True:
            line = await self._read_line("> ")
            if line is None:
                break
            if not await self.handle_line(line):
                break
        await self.wait_pending()
        await self._workspace.prefetcher.wait()

    async def _generate_and_show(self, case: CaseData) -> None:
        draft = await self._workspace.drafts.generate(case)
        if draft is not None:
            self._write(format_draft(draft))

    async def handle_line(self, line: str) -> bool:
        """
        Handle one input line; returns False when the user asked to quit.

        Backend requests are started in the background and input keeps being read. The controllers
        ignore a request of the same kind while one is outstanding.
        """
        stripped = line.strip()
        if not stripped.startswith(":"):
            self._pending.spawn(self._workspace.conversation.submit(line), name="assistant-submit")
            return True

        command, _, arg = stripped[1:].partition(" ")
        arg = arg.strip()
        store = self._workspace.store
        drafts = self._workspace.drafts
        if command in ("quit", "exit", "q"):
            return False
        if command == "help":
            self._write(HELP_TEXT)
        elif command == "status":
            self._write(format_status(store.health, store.templates))
        elif command == "generate":
            if not arg:
                self._write("Usage: :generate <case.yaml>")
                return True
            case = self.load_case(Path(arg))
            if case is not None:
                self._pending.spawn(self._generate_and_show(case), name="draft-generate")
        elif command in ("show", "finalize", "export"):
            draft = drafts.draft
            if draft is None:
                self._write("No draft yet. Use :generate <case.yaml> first.")
            elif command == "show":
                self._write(format_draft(draft))
            elif command == "finalize":
                approver = await self.prompt_approver()
                self._pending.spawn(drafts.finalize(draft.draft_id, approver), name="draft-finalize")
            else:
                self._pending.spawn(drafts.export_document(draft.draft_id), name="draft-export")
        else:
            self._write(f"Unknown command: {command}. Type :help for commands.")
        return True

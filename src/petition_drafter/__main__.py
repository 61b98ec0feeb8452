from __future__ import annotations

import argparse
import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from petition_drafter.adapters.terminal import DraftWorkspaceApp, PetitionChatApp
from petition_drafter.adapters.terminal.interfaces import TerminalAdapter
from petition_drafter.adapters.terminal.render import format_status
from petition_drafter.client import DraftingClient, HttpDraftingClient, MockDraftingClient
from petition_drafter.config import AppConfig, ConfigLoadRequest, YamlConfigLoader
from petition_drafter.config.interfaces import ConfigLoader
from petition_drafter.core.catalog import JURISDICTIONS
from petition_drafter.core.models import Approver
from petition_drafter.logging import init_logging
from petition_drafter.session import DirectorySink, DraftWorkspace, PetitionChatSession

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="petition-drafter", description="Legal petition drafting client")
    parser.add_argument(
        "--config",
        default="data/config/config.yaml",
        help="Path to config.yaml (default: data/config/config.yaml)",
    )
    parser.add_argument(
        "--no-dotenv",
        action="store_true",
        help="Disable loading .env (env overrides still apply)",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use a deterministic offline backend instead of the configured service",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: chat
    subparsers.add_parser("chat", help="Free-form petition chat")

    # Command: ask
    subparsers.add_parser("ask", help="Drafting workspace with the legal assistant")

    # Command: draft
    draft_parser = subparsers.add_parser("draft", help="Generate a structured petition draft from a case file")
    draft_parser.add_argument("--case", required=True, help="Path to a YAML case file")
    draft_parser.add_argument("--case-type", default=None, help="Override the case type from the case file")
    draft_parser.add_argument(
        "--jurisdiction",
        default=None,
        choices=list(JURISDICTIONS),
        help="Override the jurisdiction from the case file",
    )
    draft_parser.add_argument("--finalize", action="store_true", help="Finalize the generated draft")
    draft_parser.add_argument("--approver-name", default=None, help="Approver name (prompted when omitted)")
    draft_parser.add_argument("--bar-id", default=None, help="Approver Bar Council ID (prompted when omitted)")
    draft_parser.add_argument("--export", action="store_true", help="Download the draft as DOCX")

    # Command: health
    subparsers.add_parser("health", help="Show backend health and the template catalog")

    return parser


async def _load_config(args: argparse.Namespace) -> AppConfig:
    loader: ConfigLoader = YamlConfigLoader()
    request = ConfigLoadRequest(
        yaml_path=args.config,
        dotenv_path=None if args.no_dotenv else ".env",
    )
    return await loader.load(request)


@asynccontextmanager
async def _open_client(args: argparse.Namespace, config: AppConfig) -> AsyncIterator[DraftingClient]:
    if args.mock:
        yield MockDraftingClient()
        return
    async with HttpDraftingClient(settings=config.backend) as client:
        yield client


def _sink(config: AppConfig) -> DirectorySink:
    return DirectorySink(directory=Path(config.app.export_dir))


async def _run_chat(args: argparse.Namespace, config: AppConfig) -> int:
    async with _open_client(args, config) as client:
        session = PetitionChatSession.create(client=client, settings=config.session, sink=_sink(config))
        app: TerminalAdapter = PetitionChatApp(session=session)
        await app.run()
    return 0


async def _run_ask(args: argparse.Namespace, config: AppConfig) -> int:
    async with _open_client(args, config) as client:
        workspace = DraftWorkspace.create(client=client, settings=config.session, sink=_sink(config))
        app: TerminalAdapter = DraftWorkspaceApp(workspace=workspace)
        await app.run()
    return 0


async def _run_draft(args: argparse.Namespace, config: AppConfig) -> int:
    approver = None
    if args.approver_name is not None or args.bar_id is not None:
        approver = Approver(name=args.approver_name or "", bar_id=args.bar_id or "")

    async with _open_client(args, config) as client:
        workspace = DraftWorkspace.create(client=client, settings=config.session, sink=_sink(config))
        app = DraftWorkspaceApp(workspace=workspace)
        case = app.load_case(Path(args.case), case_type=args.case_type, jurisdiction=args.jurisdiction)
        if case is None:
            return 2
        ok = await app.run_draft(case, finalize=args.finalize, approver=approver, export=args.export)
    return 0 if ok else 1


async def _run_health(args: argparse.Namespace, config: AppConfig) -> int:
    async with _open_client(args, config) as client:
        workspace = DraftWorkspace.create(client=client, settings=config.session, sink=_sink(config))
        await workspace.prefetcher.run()
        print(format_status(workspace.store.health, workspace.store.templates))
    health = workspace.store.health
    return 0 if health is not None and health.is_healthy else 1


_COMMANDS = {
    "chat": _run_chat,
    "ask": _run_ask,
    "draft": _run_draft,
    "health": _run_health,
}


async def _main_async() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    config = await _load_config(args)
    # Interactive sessions keep log output in the file only.
    init_logging(config.logging, console=args.command not in ("chat", "ask"))
    logger.info("Starting petition drafter. command=%s mock=%s", args.command, args.mock)
    return await _COMMANDS[args.command](args, config)


def main() -> None:
    try:
        exit_code = asyncio.run(_main_async())
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        exit_code = 130
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()

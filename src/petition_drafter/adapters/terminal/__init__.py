"""Terminal adapters for the petition chat and the drafting workspace."""

from petition_drafter.adapters.terminal.chat_app import PetitionChatApp
from petition_drafter.adapters.terminal.workspace_app import DraftWorkspaceApp

__all__ = ["DraftWorkspaceApp", "PetitionChatApp"]

"""Drafting backend contracts and implementations."""

from petition_drafter.client.http import HttpDraftingClient
from petition_drafter.client.interfaces import DraftingClient
from petition_drafter.client.mock import MockDraftingClient

__all__ = ["DraftingClient", "HttpDraftingClient", "MockDraftingClient"]

"""Client-side session state machine: store, controllers and the two session variants."""

from petition_drafter.session.conversation import AssistantExchange, ConversationController, PetitionExchange
from petition_drafter.session.drafts import DraftLifecycleController
from petition_drafter.session.export import DirectorySink
from petition_drafter.session.feedback import FeedbackController
from petition_drafter.session.prefetch import Prefetcher
from petition_drafter.session.store import SessionStore
from petition_drafter.session.workspace import DraftWorkspace, PetitionChatSession

__all__ = [
    "AssistantExchange",
    "ConversationController",
    "DirectorySink",
    "DraftLifecycleController",
    "DraftWorkspace",
    "FeedbackController",
    "PetitionChatSession",
    "PetitionExchange",
    "Prefetcher",
    "SessionStore",
]

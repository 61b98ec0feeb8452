from __future__ import annotations

import logging
from typing import Optional, Union

from petition_drafter.client.interfaces import DraftingClient
from petition_drafter.core.models import FeedbackSubmission, Rating, Turn
from petition_drafter.errors import TransportError
from petition_drafter.session.store import SessionStore

logger = logging.getLogger(__name__)

THANK_YOU_TEXT = "Thank you for your feedback!"


class FeedbackController:
    """
    Thumbs up/down on assistant turns.

    A thumbs-down first opens the comment editor for that turn; a second thumbs-down on the same
    turn submits. Submission failures are logged and leave the editor as it was.

    A turn may be named by its session ref, which resolves to the newest assistant turn carrying it,
    or passed itself. Pass the turn when several turns share one ref.
    """

    def __init__(self, *, store: SessionStore, client: DraftingClient, notice_seconds: float = 3.0) -> None:
        self._store = store
        self._client = client
        self._notice_seconds = notice_seconds

    @property
    def open_for(self) -> Optional[str]:
        return self._store.open_feedback_for

    def set_comment(self, text: str) -> None:
        self._store.feedback_comment = text

    def cancel(self) -> None:
        self._store.close_feedback_editor()

    def _resolve(self, target: Union[Turn, str]) -> Optional[Turn]:
        if isinstance(target, Turn):
            return target if self._store.holds_rateable(target) else None
        return self._store.find_turn(target)

    async def rate(self, target: Union[Turn, str], rating: Rating) -> None:
        turn = self._resolve(target)
        if turn is None:
            logger.debug("Feedback ignored for unknown turn. target=%s", target)
            return
        session_ref = turn.session_ref
        if self._store.feedback_in_flight:
            logger.debug("Feedback ignored while a submission is in flight. session_ref=%s", session_ref)
            return

        if rating == "down" and self._store.feedback_turn is not turn:
            # Only one editor may be open; any other turn's unsent comment is discarded.
            self._store.open_feedback_editor(turn)
            return

        comment = (self._store.feedback_comment.strip() or None) if rating == "down" else None
        submission = FeedbackSubmission(
            session_ref=session_ref,
            rating=rating,
            comment=comment,
            content=turn.content,
        )
        self._store.feedback_in_flight = True
        try:
            await self._client.submit_feedback(submission)
        except TransportError as exc:
            logger.warning("Feedback submission failed. session_ref=%s rating=%s error=%s", session_ref, rating, exc)
            return
        except Exception:
            logger.exception("Unexpected error during feedback submission. session_ref=%s", session_ref)
            return
        finally:
            self._store.feedback_in_flight = False

        logger.info("Feedback recorded. session_ref=%s rating=%s has_comment=%s", session_ref, rating, comment is not None)
        self._store.show_notice(THANK_YOU_TEXT, seconds=self._notice_seconds)
        self._store.close_feedback_editor()

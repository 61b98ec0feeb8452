import asyncio
import unittest

from petition_drafter.core.models import Turn
from petition_drafter.errors import TransportError
from petition_drafter.session.feedback import THANK_YOU_TEXT, FeedbackController
from petition_drafter.session.store import SessionStore
from tests.support import ScriptedDraftingClient, wait_until

ACK = {"status": "recorded"}


class FeedbackControllerTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.client = ScriptedDraftingClient()
        self.store = SessionStore()
        self.store.append(Turn(role="user", content="I need a civil petition"))
        self.store.append(Turn(role="assistant", content="PETITION A", session_ref="conv-a"))
        self.store.append(Turn(role="user", content="Add the limitation ground"))
        self.store.append(Turn(role="assistant", content="PETITION B", session_ref="conv-b"))
        self.controller = FeedbackController(store=self.store, client=self.client)

    async def test_first_down_opens_editor_without_request(self) -> None:
        await self.controller.rate("conv-a", "down")

        self.assertEqual(self.store.open_feedback_for, "conv-a")
        self.assertEqual(self.client.calls, [])

    async def test_second_down_submits_once_and_closes_editor(self) -> None:
        self.client.script("submit_feedback", ACK)
        await self.controller.rate("conv-a", "down")
        self.controller.set_comment("  Needs more citations  ")

        await self.controller.rate("conv-a", "down")

        calls = self.client.calls_for("submit_feedback")
        self.assertEqual(len(calls), 1)
        submission = calls[0]["submission"]
        self.assertEqual(submission.session_ref, "conv-a")
        self.assertEqual(submission.rating, "down")
        self.assertEqual(submission.comment, "Needs more citations")
        self.assertEqual(submission.content, "PETITION A")
        self.assertIsNone(self.store.open_feedback_for)
        self.assertEqual(self.store.feedback_comment, "")
        self.assertEqual(self.store.notice.text, THANK_YOU_TEXT)

    async def test_down_without_comment_sends_null_comment(self) -> None:
        self.client.script("submit_feedback", ACK)
        await self.controller.rate("conv-b", "down")
        await self.controller.rate("conv-b", "down")

        self.assertIsNone(self.client.calls_for("submit_feedback")[0]["submission"].comment)

    async def test_opening_another_editor_closes_the_first_without_submitting(self) -> None:
        await self.controller.rate("conv-a", "down")
        self.controller.set_comment("too long")

        await self.controller.rate("conv-b", "down")

        self.assertEqual(self.store.open_feedback_for, "conv-b")
        self.assertEqual(self.store.feedback_comment, "")
        self.assertEqual(self.client.calls, [])

    async def test_up_submits_immediately(self) -> None:
        self.client.script("submit_feedback", ACK)

        await self.controller.rate("conv-b", "up")

        submission = self.client.calls_for("submit_feedback")[0]["submission"]
        self.assertEqual(submission.rating, "up")
        self.assertIsNone(submission.comment)
        self.assertEqual(submission.content, "PETITION B")

    async def test_failure_leaves_editor_untouched(self) -> None:
        self.client.script("submit_feedback", TransportError("submit_feedback", status=502))
        await self.controller.rate("conv-a", "down")
        self.controller.set_comment("wrong court")

        with self.assertLogs("petition_drafter.session.feedback", level="WARNING"):
            await self.controller.rate("conv-a", "down")

        self.assertEqual(len(self.client.calls), 1)
        self.assertEqual(self.store.open_feedback_for, "conv-a")
        self.assertEqual(self.store.feedback_comment, "wrong court")
        self.assertIsNone(self.store.notice)

    async def test_unknown_turn_is_ignored(self) -> None:
        await self.controller.rate("missing", "up")
        await self.controller.rate("missing", "down")

        self.assertEqual(self.client.calls, [])
        self.assertIsNone(self.store.open_feedback_for)

    async def test_rating_an_earlier_turn_that_shares_its_ref(self) -> None:
        store = SessionStore()
        first = store.append(Turn(role="assistant", content="PETITION v1", session_ref="conv-1"))
        store.append(Turn(role="assistant", content="PETITION v2", session_ref="conv-1"))
        controller = FeedbackController(store=store, client=self.client)
        self.client.script("submit_feedback", ACK)

        await controller.rate(first, "up")

        submission = self.client.calls_for("submit_feedback")[0]["submission"]
        self.assertEqual(submission.content, "PETITION v1")
        self.assertEqual(submission.session_ref, "conv-1")

    async def test_editor_follows_the_turn_not_the_ref(self) -> None:
        store = SessionStore()
        first = store.append(Turn(role="assistant", content="PETITION v1", session_ref="conv-1"))
        second = store.append(Turn(role="assistant", content="PETITION v2", session_ref="conv-1"))
        controller = FeedbackController(store=store, client=self.client)
        self.client.script("submit_feedback", ACK)

        await controller.rate(first, "down")
        controller.set_comment("older draft was better")
        await controller.rate(second, "down")

        self.assertEqual(self.client.calls, [])
        self.assertIs(store.feedback_turn, second)
        self.assertEqual(store.feedback_comment, "")

        await controller.rate(second, "down")
        self.assertEqual(self.client.calls_for("submit_feedback")[0]["submission"].content, "PETITION v2")

    async def test_turn_from_another_session_is_ignored(self) -> None:
        stray = Turn(role="assistant", content="PETITION A", session_ref="conv-a")

        await self.controller.rate(stray, "up")

        self.assertEqual(self.client.calls, [])

    async def test_cancel_closes_editor_and_clears_comment(self) -> None:
        await self.controller.rate("conv-a", "down")
        self.controller.set_comment("draft")

        self.controller.cancel()

        self.assertIsNone(self.store.open_feedback_for)
        self.assertEqual(self.store.feedback_comment, "")

    async def test_rating_ignored_while_submission_in_flight(self) -> None:
        self.client.gate = asyncio.Event()
        self.client.script("submit_feedback", ACK)
        first = asyncio.create_task(self.controller.rate("conv-a", "up"))
        await wait_until(lambda: self.store.feedback_in_flight)

        await self.controller.rate("conv-b", "up")

        self.client.gate.set()
        await first
        self.assertEqual(len(self.client.calls), 1)

    async def test_success_notice_dismisses_itself_after_three_seconds(self) -> None:
        self.client.script("submit_feedback", ACK)

        await self.controller.rate("conv-a", "up")
        self.assertIsNotNone(self.store.notice)

        await asyncio.sleep(2.5)
        self.assertIsNotNone(self.store.notice)

        await asyncio.sleep(0.8)
        self.assertIsNone(self.store.notice)


if __name__ == "__main__":
    unittest.main()

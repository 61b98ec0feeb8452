import unittest
from typing import Any, Dict, List

from aiohttp import web
from aiohttp.test_utils import TestServer

from petition_drafter.client.http import HttpDraftingClient
from petition_drafter.config.models import BackendSettings
from petition_drafter.core.models import FeedbackSubmission, Turn
from petition_drafter.errors import ResponseFormatError, TransportError
from tests.support import draft_payload, make_case


class HttpDraftingClientTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.requests: List[Dict[str, Any]] = []
        self.responses: Dict[str, web.Response] = {}

        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handle)
        self.server = TestServer(app)
        await self.server.start_server()
        self.addAsyncCleanup(self.server.close)

        settings = BackendSettings(base_url=f"http://{self.server.host}:{self.server.port}", request_timeout_seconds=5)
        self.client = HttpDraftingClient(settings=settings)
        await self.client.__aenter__()
        self.addAsyncCleanup(self.client.close)

    async def _handle(self, request: web.Request) -> web.Response:
        body = await request.json() if request.can_read_body else None
        self.requests.append({"method": request.method, "path": request.path, "body": body})
        response = self.responses.get(f"{request.method} {request.path}")
        if response is None:
            return web.json_response({"detail": "Not Found"}, status=404)
        return response

    def _reply(self, route: str, response: web.Response) -> None:
        self.responses[route] = response

    async def test_generate_petition_request_and_reply(self) -> None:
        self._reply(
            "POST /api/petition",
            web.json_response({"petition": "PETITION", "conversation_id": "conv-1", "legal_context": ["CPC s.115"]}),
        )
        history = [
            Turn(role="user", content="My case"),
            Turn(role="assistant", content="DRAFT", session_ref="conv-1", legal_references=("PPC s.302",)),
        ]

        reply = await self.client.generate_petition(message="Add prayer", history=history, conversation_id="conv-1")

        self.assertEqual(reply.petition_text, "PETITION")
        self.assertEqual(reply.conversation_id, "conv-1")
        self.assertEqual(reply.legal_context, ("CPC s.115",))
        self.assertEqual(
            self.requests[0]["body"],
            {
                "message": "Add prayer",
                "conversation_history": [
                    {"role": "user", "content": "My case"},
                    {
                        "role": "assistant",
                        "content": "DRAFT",
                        "conversation_id": "conv-1",
                        "legal_context": ["PPC s.302"],
                    },
                ],
                "conversation_id": "conv-1",
            },
        )

    async def test_first_petition_request_omits_conversation_id(self) -> None:
        self._reply("POST /api/petition", web.json_response({"petition": "PETITION", "conversation_id": "conv-1"}))

        await self.client.generate_petition(message="My case", history=[], conversation_id=None)

        self.assertNotIn("conversation_id", self.requests[0]["body"])

    async def test_error_detail_is_surfaced(self) -> None:
        self._reply("POST /api/petition", web.json_response({"detail": "Model overloaded"}, status=503))

        with self.assertRaises(TransportError) as ctx:
            await self.client.generate_petition(message="My case", history=[], conversation_id=None)

        self.assertEqual(ctx.exception.status, 503)
        self.assertEqual(ctx.exception.detail, "Model overloaded")

    async def test_error_without_detail_uses_fallback(self) -> None:
        self._reply("POST /api/v1/chat", web.Response(text="upstream exploded", status=500))

        with self.assertRaises(TransportError) as ctx:
            await self.client.chat(message="hello", session_id=None)

        self.assertEqual(ctx.exception.detail, "Chat failed")

    async def test_malformed_reply_is_a_transport_error(self) -> None:
        self._reply("POST /api/petition", web.json_response({"unexpected": True}))

        with self.assertRaises(ResponseFormatError):
            await self.client.generate_petition(message="My case", history=[], conversation_id=None)

    async def test_submit_feedback_body(self) -> None:
        self._reply("POST /api/feedback", web.json_response({"status": "recorded"}))
        submission = FeedbackSubmission(session_ref="conv-1", rating="down", comment="Cite CPC", content="PETITION")

        await self.client.submit_feedback(submission)

        self.assertEqual(
            self.requests[0]["body"],
            {"conversation_id": "conv-1", "rating": "down", "comment": "Cite CPC", "petition_text": "PETITION"},
        )

    async def test_chat_uses_api_prefix(self) -> None:
        self._reply("POST /api/v1/chat", web.json_response({"response": "Hello", "session_id": "s-1"}))

        reply = await self.client.chat(message="hi", session_id=None)

        self.assertEqual(reply.response, "Hello")
        self.assertEqual(reply.session_id, "s-1")
        self.assertEqual(self.requests[0]["body"], {"message": "hi", "session_id": None})

    async def test_generate_draft_normalizes_sections(self) -> None:
        self._reply("POST /api/v1/petitions/generate", web.json_response(draft_payload("d-7")))

        draft = await self.client.generate_draft(make_case())

        self.assertEqual([s.title for s in draft.sections], ["Title", "Facts", "Section 3"])
        self.assertEqual(draft.validation.checks[0].name, "citation_verification")
        self.assertEqual(draft.provenance[0].page_number, 42)
        self.assertEqual(self.requests[0]["body"]["facts"], make_case().facts)
        self.assertEqual(self.requests[0]["body"]["jurisdiction"], "Lahore High Court")

    async def test_finalize_draft(self) -> None:
        self._reply(
            "POST /api/v1/petitions/d-7/finalize",
            web.json_response({"draft_id": "d-7", "status": "finalized"}),
        )

        result = await self.client.finalize_draft(
            draft_id="d-7", approver_name="Ayesha Khan", approver_id="LHC-1234", notes="Approved for filing"
        )

        self.assertEqual(result.status, "finalized")
        self.assertEqual(self.requests[0]["body"]["approver_id"], "LHC-1234")

    async def test_export_document_returns_bytes(self) -> None:
        self._reply("GET /api/v1/petitions/d-7/docx", web.Response(body=b"PK\x03\x04docx"))

        content = await self.client.export_document("d-7")

        self.assertEqual(content, b"PK\x03\x04docx")

    async def test_health_tolerates_error_status_with_json_body(self) -> None:
        self._reply("GET /api/v1/health", web.json_response({"database": "down"}, status=503))

        health = await self.client.health_check()

        self.assertEqual(health.status, "unhealthy")
        self.assertFalse(health.is_healthy)
        self.assertEqual(health.dependencies, {"database": "down"})

    async def test_health_error_without_json_raises(self) -> None:
        self._reply("GET /api/v1/health", web.Response(text="bad gateway", status=502))

        with self.assertRaises(TransportError) as ctx:
            await self.client.health_check()

        self.assertEqual(ctx.exception.status, 502)

    async def test_list_templates_accepts_bare_names(self) -> None:
        self._reply("GET /api/v1/templates", web.json_response({"templates": ["civil_revision", {"name": "Bail"}]}))

        catalog = await self.client.list_templates()

        self.assertEqual([t.label for t in catalog.templates], ["civil_revision", "Bail"])


class UnreachableBackendTests(unittest.IsolatedAsyncioTestCase):
    async def test_connection_failure_is_a_transport_error(self) -> None:
        server = TestServer(web.Application())
        await server.start_server()
        base_url = f"http://{server.host}:{server.port}"
        await server.close()

        async with HttpDraftingClient(settings=BackendSettings(base_url=base_url, request_timeout_seconds=5)) as client:
            with self.assertLogs("petition_drafter.client.http", level="WARNING"):
                with self.assertRaises(TransportError) as ctx:
                    await client.health_check()

        self.assertIsNone(ctx.exception.status)

    async def test_client_requires_context_manager(self) -> None:
        client = HttpDraftingClient(settings=BackendSettings())

        with self.assertRaises(RuntimeError):
            await client.list_templates()


if __name__ == "__main__":
    unittest.main()

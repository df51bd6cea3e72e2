"""REST transport and Save Gateway against a mocked backend."""

import asyncio
import json

import httpx
import pytest

from wellness_sessions.autosave import DraftEditor
from wellness_sessions.errors import AuthExpiry, ServerRejection, TransientNetworkError, WellnessError
from wellness_sessions.gateway import SaveGateway
from wellness_sessions.models.session import SessionFields, SessionStatus
from wellness_sessions.status import SaveStatus
from wellness_sessions.transport.http import HttpClient

BASE = "https://api.test/api"


def make_http(handler, **kwargs) -> HttpClient:
    return HttpClient(base_url=BASE, token="tok", transport=httpx.MockTransport(handler), **kwargs)


class TestHttpClient:
    @pytest.mark.asyncio
    async def test_sends_bearer_token_and_unwraps_data(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer tok"
            return httpx.Response(200, json={"success": True, "data": {"x": 1}})

        http = make_http(handler)
        assert await http.get("/anything") == {"x": 1}
        await http.close()

    @pytest.mark.asyncio
    async def test_unwrapped_payload_is_returned_as_is(self):
        http = make_http(lambda request: httpx.Response(200, json={"sessions": []}))
        assert await http.get("/sessions") == {"sessions": []}
        await http.close()

    @pytest.mark.asyncio
    async def test_unsuccessful_body_is_a_rejection(self):
        http = make_http(lambda request: httpx.Response(200, json={"success": False, "message": "Nope"}))
        with pytest.raises(ServerRejection, match="Nope"):
            await http.post("/my-sessions/save-draft", {})
        await http.close()

    @pytest.mark.asyncio
    async def test_client_error_message_is_kept_verbatim(self):
        http = make_http(lambda request: httpx.Response(400, json={"success": False, "message": "Title is required"}))
        with pytest.raises(ServerRejection) as info:
            await http.post("/my-sessions/publish", {})
        assert info.value.message == "Title is required"
        assert info.value.status_code == 400
        await http.close()

    @pytest.mark.asyncio
    async def test_unauthorized_escalates_to_hook(self):
        escalated = []
        http = make_http(lambda request: httpx.Response(401, json={"message": "Token expired"}),
                         on_unauthorized=lambda: escalated.append(True))
        with pytest.raises(AuthExpiry):
            await http.get("/my-sessions")
        assert escalated == [True]
        await http.close()

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        http = make_http(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(TransientNetworkError):
            await http.get("/sessions")
        await http.close()

    @pytest.mark.asyncio
    async def test_timeout_and_connection_errors_are_transient(self):
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        for handler in (slow, down):
            http = make_http(handler)
            with pytest.raises(TransientNetworkError):
                await http.get("/sessions")
            await http.close()

    @pytest.mark.asyncio
    async def test_slow_body_is_cut_off_at_total_deadline(self):
        body = b'{"a": 1}'

        async def trickle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            try:
                await reader.readuntil(b"\r\n\r\n")
                writer.write(
                    b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
                    + f"Content-Length: {len(body)}\r\n\r\n".encode()
                )
                for byte in body:
                    # each chunk arrives well inside the per-read timeout
                    writer.write(bytes([byte]))
                    await writer.drain()
                    await asyncio.sleep(0.2)
            except ConnectionError:
                pass
            finally:
                writer.close()

        server = await asyncio.start_server(trickle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        http = HttpClient(base_url=f"http://127.0.0.1:{port}", timeout=0.5)
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            with pytest.raises(TransientNetworkError):
                await http.get("/sessions")
            assert loop.time() - started < 1.0
        finally:
            await http.close()
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_undecodable_body_is_transient(self):
        http = make_http(lambda request: httpx.Response(
            200, headers={"content-encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip at all"),
        ))
        with pytest.raises(TransientNetworkError):
            await http.get("/sessions")
        await http.close()

    def test_default_timeout_is_ten_seconds(self):
        http = HttpClient(base_url=BASE)
        assert http._client.timeout == httpx.Timeout(10.0)


class TestSaveGateway:
    @pytest.mark.asyncio
    async def test_list_public_params_and_parsing(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": {
                "sessions": [{
                    "_id": "a1", "title": "Calm", "tags": ["calm"],
                    "json_file_url": "https://x.test/a.json", "status": "published",
                    "user_id": {"email": "owner@x.test"}, "updatedAt": "2024-01-01T00:00:00Z",
                }],
                "pagination": {"current": 2, "pages": 3, "total": 20},
            }})

        gateway = SaveGateway(make_http(handler))
        page = await gateway.list_public(page=2, tags="  ")
        request = seen[0]
        assert request.url.path == "/api/sessions"
        assert request.url.params["page"] == "2"
        assert request.url.params["limit"] == "9"
        assert "tags" not in request.url.params

        session = page.sessions[0]
        assert session.id == "a1"
        assert session.data_url == "https://x.test/a.json"
        assert session.status == SessionStatus.PUBLISHED
        assert session.owner_email == "owner@x.test"
        assert session.updated_at == "2024-01-01T00:00:00Z"
        assert (page.pagination.current_page, page.pagination.total_pages, page.pagination.total_count) == (2, 3, 20)

        await gateway.list_public(tags="yoga, calm")
        assert seen[1].url.params["tags"] == "yoga, calm"

    @pytest.mark.asyncio
    async def test_save_draft_includes_session_id_only_when_known(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            bodies.append(body)
            return httpx.Response(200, json={"success": True, "data": {"id": body.get("sessionId", "new1"), **body}})

        gateway = SaveGateway(make_http(handler))
        fields = SessionFields(title="Walk", tags=["outdoor"], data_url="https://x.test/w.json")
        created = await gateway.save_draft(fields)
        updated = await gateway.save_draft(fields, created.id)

        assert bodies[0] == {"title": "Walk", "tags": ["outdoor"], "dataUrl": "https://x.test/w.json"}
        assert bodies[1]["sessionId"] == "new1"
        assert created.id == updated.id == "new1"
        assert created.status == SessionStatus.DRAFT

    @pytest.mark.asyncio
    async def test_list_mine_and_delete_routes(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.method == "DELETE":
                return httpx.Response(200, json={"success": True})
            return httpx.Response(200, json={"success": True, "data": {"sessions": [{"id": "d1", "title": "D"}]}})

        gateway = SaveGateway(make_http(handler))
        mine = await gateway.list_mine("draft")
        assert [s.id for s in mine] == ["d1"]
        assert seen[0].url.params["status"] == "draft"

        await gateway.list_mine("all")
        assert "status" not in seen[1].url.params

        await gateway.delete("d1")
        assert (seen[2].method, seen[2].url.path) == ("DELETE", "/api/my-sessions/d1")

    @pytest.mark.asyncio
    async def test_malformed_payload_is_a_wellness_error(self):
        http = make_http(lambda request: httpx.Response(200, json={"success": True, "data": {"sessions": "nope"}}))
        with pytest.raises(WellnessError) as info:
            await SaveGateway(http).list_public()
        assert info.value.code == "bad_response"


@pytest.mark.asyncio
async def test_autosave_over_corrupt_response_fails_cleanly():
    http = make_http(lambda request: httpx.Response(
        200, headers={"content-encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip at all"),
    ))
    editor = DraftEditor(SaveGateway(http), autosave_delay=60.0)
    editor.on_field_change("title", "Walk")
    editor.on_field_change("data_url", "https://x.test/w.json")

    assert not await editor.autosave_tick()
    assert editor.save_status == SaveStatus.FAILED
    assert editor.session_id is None
    await editor.aclose()
    await http.close()

import pytest
from fastapi.testclient import TestClient

from mcp_engine.config import Config
from mcp_engine.core.jsonrpc import ErrorCode
from mcp_engine.core.session import SessionManager
from mcp_engine.main import SESSION_HEADER, create_app


@pytest.fixture
def sessions():
    return SessionManager()


@pytest.fixture
def client(server, sessions):
    return TestClient(create_app(server=server, sessions=sessions, settings=Config()))


def initialize(client):
    response = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}})
    assert response.status_code == 200
    return response.headers[SESSION_HEADER]


class TestStreamableHttp:
    def test_initialize_creates_session(self, client, sessions):
        session_id = initialize(client)
        assert sessions.get_session(session_id).is_active
        assert len(sessions) == 1

    def test_failed_initialize_discards_session(self, client, sessions):
        response = client.post("/mcp", json={
            "jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "1999-01-01"},
        })
        assert response.status_code == 200
        assert response.json()["error"]["code"] == ErrorCode.INVALID_PARAMS
        assert SESSION_HEADER not in response.headers
        assert len(sessions) == 0

    def test_missing_session_header(self, client):
        response = client.post("/mcp", json={"jsonrpc": "2.0", "id": 2, "method": "ping"})
        assert response.status_code == 400
        assert response.json()["id"] is None
        assert response.json()["error"]["code"] == ErrorCode.INVALID_REQUEST

    def test_request_within_session(self, client):
        session_id = initialize(client)
        response = client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "id": 7, "method": "ping"},
            headers={SESSION_HEADER: session_id},
        )
        assert response.status_code == 200
        assert response.json() == {"jsonrpc": "2.0", "id": 7, "result": {}}
        assert response.headers[SESSION_HEADER] == session_id

    def test_tool_call_within_session(self, client):
        session_id = initialize(client)
        response = client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "id": 3, "method": "tools/call", "params": {"name": "echo", "arguments": {"message": "hi"}}},
            headers={SESSION_HEADER: session_id},
        )
        assert response.json()["result"]["content"] == [{"type": "text", "text": "hi"}]

    def test_unknown_session(self, client):
        response = client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "id": 2, "method": "ping"},
            headers={SESSION_HEADER: "missing"},
        )
        assert response.status_code == 404

    def test_notification_is_accepted(self, client):
        session_id = initialize(client)
        response = client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "method": "notifications/initialized"},
            headers={SESSION_HEADER: session_id},
        )
        assert response.status_code == 202
        assert response.content == b""

    def test_parse_error(self, client):
        response = client.post("/mcp", content=b"{not json", headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.PARSE_ERROR

    def test_undecodable_body_is_parse_error(self, client):
        response = client.post("/mcp", content=b"\xff\xfe{", headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.PARSE_ERROR

    def test_empty_components_are_kept(self, server, sessions):
        app = create_app(server=server, sessions=sessions, settings=Config())
        assert app.state.sessions is sessions
        assert app.state.server is server

    def test_delete_closes_session(self, client, sessions):
        session_id = initialize(client)
        assert client.delete("/mcp", headers={SESSION_HEADER: session_id}).status_code == 204
        assert len(sessions) == 0

        response = client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "id": 2, "method": "ping"},
            headers={SESSION_HEADER: session_id},
        )
        assert response.status_code == 404

    def test_delete_unknown_session(self, client):
        assert client.delete("/mcp", headers={SESSION_HEADER: "missing"}).status_code == 404

    def test_get_stream_not_offered(self, client):
        assert client.get("/mcp").status_code == 405

    def test_status(self, client):
        body = client.get("/").json()
        assert body["status"] == "online"
        assert body["sessions"] == 0


class TestOrigins:
    def test_disallowed_origin(self, server):
        settings = Config(allowed_origins=["http://good.example"])
        client = TestClient(create_app(server=server, settings=settings))

        response = client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "id": 1, "method": "initialize"},
            headers={"origin": "http://evil.example"},
        )
        assert response.status_code == 403

        response = client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "id": 1, "method": "initialize"},
            headers={"origin": "http://good.example"},
        )
        assert response.status_code == 200

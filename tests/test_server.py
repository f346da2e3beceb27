"""Tests for MCP server implementation."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient
from bdl_mcp_server.server import SESSION_HEADER, MCPServer, create_app
from bdl_mcp_server.sessions import SessionManager


class ShortLivedSessions(SessionManager):
    """Session table whose streams end right after the endpoint event."""

    def open(self):
        session = super().open()
        session.close()
        return session


@pytest.fixture
def server(config_file, fake_registry):
    return MCPServer(config_file, registry=fake_registry)


@pytest.fixture
def client(server):
    return TestClient(server.app)


def _post(client, payload, **kwargs):
    return client.post("/mcp", json=payload, **kwargs)


class TestMCPServer:
    """Test MCPServer construction."""

    def test_server_initialization(self, server, fake_registry):
        assert server.app is not None
        assert server.registry is fake_registry
        assert server.server_info.name == "bdl-mcp-server"
        assert server.client.base_url == "http://bdl.test/api/v1"
        assert len(server.sessions) == 0

    def test_default_registry_has_bdl_tools(self, config_file):
        server = MCPServer(config_file)
        assert len(server.registry) == 28
        assert "get_data_by_variable" in server.registry

    def test_create_app(self, config_file):
        app = create_app(config_file)
        assert app.title == "BDL MCP Server"
        assert app.version == "1.0.0"


class TestHealthEndpoint:
    """Test the discovery document."""

    @pytest.mark.parametrize("path", ["/", "/health"])
    def test_health(self, client, path):
        response = client.get(path)
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ok"
        assert data["server"] == {"name": "bdl-mcp-server", "version": "1.0.0"}
        assert data["endpoints"] == {"mcp": "/mcp (POST)", "sse": "/sse (GET)"}
        assert data["sessions"] == 0

    def test_unknown_path(self, client):
        response = client.get("/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_wrong_method(self, client):
        assert client.get("/mcp").status_code == 405


class TestMCPEndpoint:
    """Test JSON-RPC over POST /mcp."""

    def test_initialize_method(self, client, sample_mcp_request):
        response = _post(client, sample_mcp_request)
        assert response.status_code == 200

        data = response.json()
        assert data["jsonrpc"] == "2.0"
        assert data["id"] == 1
        assert data["result"]["protocolVersion"] == "2024-11-05"
        assert data["result"]["capabilities"] == {"tools": {}}
        assert data["result"]["serverInfo"] == {"name": "bdl-mcp-server", "version": "1.0.0"}

    def test_list_tools_method(self, client):
        response = _post(client, {"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
        assert response.status_code == 200

        tools = response.json()["result"]["tools"]
        assert [tool["name"] for tool in tools] == ["get_year", "get_unavailable", "sleep"]
        assert tools[0]["inputSchema"]["required"] == ["id"]

    def test_call_tool(self, client, sample_tool_call_request):
        response = _post(client, sample_tool_call_request)
        assert response.status_code == 200

        result = response.json()["result"]
        assert result["isError"] is False
        assert json.loads(result["content"][0]["text"]) == {"id": 2023, "lang": None}

    def test_call_tool_with_bad_arguments(self, client):
        response = _post(client, {
            "jsonrpc": "2.0",
            "id": 3,
            "method": "tools/call",
            "params": {"name": "get_year", "arguments": {"id": "abc"}},
        })
        assert response.status_code == 200

        data = response.json()
        assert "error" not in data
        assert data["result"]["isError"] is True

    def test_call_tool_upstream_failure(self, client):
        response = _post(client, {
            "jsonrpc": "2.0",
            "id": 4,
            "method": "tools/call",
            "params": {"name": "get_unavailable", "arguments": {}},
        })
        result = response.json()["result"]
        assert result["isError"] is True
        assert "503" in result["content"][0]["text"]

    def test_unknown_method(self, client):
        response = _post(client, {"jsonrpc": "2.0", "id": 5, "method": "unknown/method", "params": {}})
        assert response.status_code == 200

        data = response.json()
        assert data["id"] == 5
        assert data["error"]["code"] == -32603
        assert data["error"]["message"] == "Unknown method: unknown/method"

    def test_missing_params_for_tools_call(self, client):
        response = _post(client, {"jsonrpc": "2.0", "id": 7, "method": "tools/call"})
        data = response.json()
        assert data["id"] == 7
        assert data["error"]["code"] == -32603
        assert "Missing params" in data["error"]["message"]

    def test_invalid_json(self, client):
        response = client.post("/mcp", content="invalid json", headers={"content-type": "application/json"})
        assert response.status_code == 400

        data = response.json()
        assert data["jsonrpc"] == "2.0"
        assert data["id"] is None
        assert data["error"]["code"] == -32700

    def test_invalid_request_structure(self, client):
        response = _post(client, {"jsonrpc": "2.0", "id": 8})
        assert response.status_code == 400

        data = response.json()
        assert data["id"] == 8
        assert data["error"]["code"] == -32600

    def test_batch(self, client):
        response = _post(client, [
            {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "sleep", "arguments": {"delay": 30}}},
            {"jsonrpc": "2.0", "id": 2, "method": "ping"},
            {"jsonrpc": "2.0", "id": 3},
        ])
        assert response.status_code == 200

        data = response.json()
        assert [item["id"] for item in data] == [1, 2, 3]
        assert data[1]["result"] == {}
        assert data[2]["error"]["code"] == -32600

    def test_empty_batch(self, client):
        response = _post(client, [])
        assert response.status_code == 200
        assert response.json() == []

    def test_unknown_session_token_is_ignored(self, client):
        response = _post(client, {"jsonrpc": "2.0", "id": 1, "method": "ping"}, params={"sessionId": "stale"})
        assert response.status_code == 200
        assert response.json()["result"] == {}


class TestEventStream:
    """Test the SSE channel and pushes onto it."""

    def test_sse_announces_message_endpoint(self, config_file, fake_registry):
        server = MCPServer(config_file, registry=fake_registry, sessions=ShortLivedSessions("/mcp"))
        client = TestClient(server.app)

        response = client.get("/sse")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        token = response.headers[SESSION_HEADER]
        assert response.text == f"event: endpoint\ndata: /mcp?sessionId={token}\n\n"
        assert token not in server.sessions

    @pytest.mark.asyncio
    async def test_reply_is_pushed_to_session(self, server):
        session = server.sessions.open()
        transport = httpx.ASGITransport(app=server.app)

        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
            response = await http.post(
                session.message_endpoint,
                json={"jsonrpc": "2.0", "id": 11, "method": "ping"},
            )
        assert response.status_code == 200
        server.sessions.close(session.token)

        frames = [frame async for frame in server.sessions.event_stream(session)]
        assert frames == [
            f"event: endpoint\ndata: /mcp?sessionId={session.token}\n\n",
            'event: message\ndata: {"jsonrpc":"2.0","id":11,"result":{}}\n\n',
        ]

    @pytest.mark.asyncio
    async def test_session_header_also_selects_session(self, server):
        session = server.sessions.open()
        transport = httpx.ASGITransport(app=server.app)

        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
            await http.post(
                "/mcp",
                json=[{"jsonrpc": "2.0", "id": 1, "method": "ping"}],
                headers={SESSION_HEADER: session.token},
            )
        server.sessions.close(session.token)

        frames = [frame async for frame in session.frames()]
        assert frames[1] == 'event: message\ndata: [{"jsonrpc":"2.0","id":1,"result":{}}]\n\n'

    @pytest.mark.asyncio
    async def test_push_after_close_does_not_fail_request(self, server):
        session = server.sessions.open()
        server.sessions.close(session.token)
        transport = httpx.ASGITransport(app=server.app)

        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
            response = await http.post(session.message_endpoint, json={"jsonrpc": "2.0", "id": 1, "method": "ping"})

        assert response.status_code == 200
        assert response.json()["result"] == {}

    def test_health_counts_open_sessions(self, server, client):
        server.sessions.open()
        server.sessions.open()
        assert client.get("/health").json()["sessions"] == 2

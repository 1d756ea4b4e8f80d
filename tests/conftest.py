import pytest

from handlers import build_registry
from mcp_engine.config import McpConfig
from mcp_engine.core.jsonrpc import JsonRpcRequest
from mcp_engine.server.router import Server


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def settings():
    return McpConfig(name="Test Server", version="0.1.0", instructions="Use the tools.")


@pytest.fixture
def server(settings, registry):
    return Server(settings, registry)


@pytest.fixture
def make_context(server):
    """Build a request context the way the router does."""
    def _make(method="ping", params=None, request_id=1):
        return server.create_context(JsonRpcRequest(method=method, params=params, id=request_id))
    return _make

import asyncio
import io
import json

import pytest

from mcp_engine.core.jsonrpc import ErrorCode
from mcp_engine.stdio import StdioTransport


async def serve(server, *chunks):
    reader = asyncio.StreamReader()
    for chunk in chunks:
        reader.feed_data(chunk)
    reader.feed_eof()

    writer = io.BytesIO()
    await StdioTransport(server, reader, writer).serve()
    return [json.loads(line) for line in writer.getvalue().splitlines()]


class TestStdioTransport:
    @pytest.mark.asyncio
    async def test_responses_in_arrival_order(self, server):
        responses = await serve(
            server,
            b'{"jsonrpc":"2.0","id":1,"method":"ping"}\n',
            b'not json\n',
            b'{"jsonrpc":"2.0","method":"notifications/initialized"}\n',
            b'{"jsonrpc":"2.0","id":2,"method":"nope"}\n',
        )

        assert responses[0] == {"jsonrpc": "2.0", "id": 1, "result": {}}
        assert responses[1]["id"] == 2
        assert responses[1]["error"]["code"] == ErrorCode.METHOD_NOT_FOUND
        assert len(responses) == 2

    @pytest.mark.asyncio
    async def test_message_split_across_chunks(self, server):
        responses = await serve(server, b'{"jsonrpc":"2.0",', b'"id":3,"method":"ping"}\r\n')
        assert responses == [{"jsonrpc": "2.0", "id": 3, "result": {}}]

    @pytest.mark.asyncio
    async def test_invalid_message_with_id(self, server):
        responses = await serve(server, b'{"jsonrpc":"2.0","id":5}\n')
        assert responses[0]["id"] == 5
        assert responses[0]["error"]["code"] == ErrorCode.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_unterminated_tail_is_dropped(self, server):
        assert await serve(server, b'{"jsonrpc":"2.0","id":6,"method":"ping"}') == []

    @pytest.mark.asyncio
    async def test_tool_call(self, server):
        request = {"jsonrpc": "2.0", "id": 9, "method": "tools/call", "params": {"name": "echo", "arguments": {"message": "hi"}}}
        responses = await serve(server, json.dumps(request).encode("utf-8") + b"\n")
        assert responses[0]["result"]["content"] == [{"type": "text", "text": "hi"}]

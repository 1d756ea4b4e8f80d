import sys
import asyncio
import logging
from typing import Any, BinaryIO, Dict, Optional

from mcp_engine.config import config
from mcp_engine.core.framing import FramingError, ReadBuffer, deserialize_message, serialize_message
from mcp_engine.server.registry import registry
from mcp_engine.server.router import Server

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class StdioTransport:
    """Newline-delimited JSON-RPC over a byte stream pair.

    Messages are handled strictly one at a time in arrival order; stdout carries
    nothing but protocol frames.
    """

    def __init__(self, server: Server, reader: asyncio.StreamReader, writer: BinaryIO):
        self.server = server
        self.reader = reader
        self.writer = writer
        self.buffer = ReadBuffer()

    async def serve(self):
        while True:
            chunk = await self.reader.read(CHUNK_SIZE)
            if not chunk:
                break  # stdin closed
            self.buffer.append(chunk)
            await self._drain()

        if len(self.buffer):
            logger.warning(f"Discarding {len(self.buffer)} bytes of unterminated input")
        self.buffer.clear()

    async def _drain(self):
        while True:
            try:
                line = self.buffer.read_message()
            except FramingError as e:
                logger.warning(f"Dropping frame: {e}")
                continue
            if line is None:
                return
            await self.process_line(line)

    async def process_line(self, line: str) -> Optional[Dict[str, Any]]:
        try:
            message = deserialize_message(line)
        except FramingError as e:
            logger.warning(f"Dropping frame: {e}")
            return None

        response = await self.server.handle(message)
        if response is not None:
            self.send(response)
        return response

    def send(self, message: Dict[str, Any]):
        self.writer.write(serialize_message(message))
        self.writer.flush()


async def _run(server: Server):
    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await asyncio.get_running_loop().connect_read_pipe(lambda: protocol, sys.stdin)

    await StdioTransport(server, reader, sys.stdout.buffer).serve()


def main():
    logging.basicConfig(
        level=config.server.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )
    server = Server.from_config(config, registry)
    logger.info(f"Serving {config.mcp.name} {config.mcp.version} on stdio")
    asyncio.run(_run(server))


if __name__ == "__main__":
    main()

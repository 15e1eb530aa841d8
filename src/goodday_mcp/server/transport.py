"""
STDIO Transport — newline-delimited JSON-RPC

Reads from stdin, writes to stdout.
NEVER pollutes stdout with logs.
"""

import asyncio
import json
import sys
from typing import Any, BinaryIO, Dict, Optional

from goodday_mcp.server.logger import get_logger

log = get_logger("transport")


class MalformedMessage:
    """A line that could not be decoded as JSON."""

    __slots__ = ("raw", "error")

    def __init__(self, raw: bytes, error: str):
        self.raw = raw
        self.error = error


class StdioTransport:
    """Async stdin reader + direct stdout writer."""

    def __init__(self, stdin: Optional[BinaryIO] = None, stdout: Optional[BinaryIO] = None):
        self._stdin = stdin
        self._stdout = stdout
        self._reader: Optional[asyncio.StreamReader] = None
        self.running = False

    async def start(self):
        """Attach an async reader to stdin."""
        loop = asyncio.get_running_loop()

        self._reader = asyncio.StreamReader(limit=2**20)
        protocol = asyncio.StreamReaderProtocol(self._reader)
        await loop.connect_read_pipe(lambda: protocol, self._stdin or sys.stdin.buffer)

        if self._stdout is None:
            self._stdout = sys.stdout.buffer
        self.running = True
        log.info("Transport initialized")

    async def read_message(self):
        """
        Read one message from stdin.
        Returns the parsed object, a MalformedMessage for undecodable lines,
        or None on EOF. Blank lines are skipped.
        """
        if not self._reader:
            raise RuntimeError("Transport not started")

        while True:
            raw_bytes = await self._reader.readline()
            if not raw_bytes:
                return None
            if raw_bytes.strip():
                break

        try:
            return json.loads(raw_bytes)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            log.error(f"JSON parse error: {exc}")
            return MalformedMessage(raw_bytes, str(exc))

    async def write_message(self, message: Dict[str, Any]):
        """Write one JSON-RPC message to stdout."""
        if self._stdout is None:
            raise RuntimeError("Transport not started")

        raw_bytes = (json.dumps(message, separators=(",", ":"), ensure_ascii=False) + "\n").encode("utf-8")
        self._stdout.write(raw_bytes)
        self._stdout.flush()
        log.debug(f"-> {len(raw_bytes)} bytes id={message.get('id')}")

    async def close(self):
        self.running = False
        log.info("Transport closed")

"""
MCP Server — Main Orchestrator

Ties together:
  Transport -> Protocol -> Router -> Tools -> GoodDay API

Flow:
  1. Transport reads one JSON line from stdin
  2. Protocol validates JSON-RPC 2.0
  3. Router dispatches to the tool handler
  4. Tool handler calls the GoodDay API and renders text
  5. Transport writes the response to stdout

Messages are handled strictly one at a time.
"""

import asyncio
import signal
from typing import Any, Optional

from goodday_mcp.api.client import GoodDayClient
from goodday_mcp.config import Config
from goodday_mcp.server.logger import get_logger
from goodday_mcp.server.protocol import (
    INTERNAL_ERROR,
    PARSE_ERROR,
    ProtocolError,
    make_error,
    make_response,
    validate_message,
)
from goodday_mcp.server.router import Router
from goodday_mcp.server.transport import MalformedMessage, StdioTransport

log = get_logger("server")


class MCPServer:
    """
    Main server orchestrator.

    Usage:
        server = MCPServer(GoodDayClient(api_key, base_url))
        server.register_tools(TOOLS, handle_tool)
        await server.run()
    """

    def __init__(self, client: GoodDayClient, transport: Optional[StdioTransport] = None):
        self._client = client
        self._transport = transport or StdioTransport()
        self._router = Router()
        self._closed = False
        self._running = False
        self._main_task: Optional[asyncio.Task] = None

    # -- tool registration (call before run) --

    def register_tools(self, tools_list, handler):
        """Register a tools module with the router."""
        self._router.register_tools_module(tools_list, handler)

    @property
    def router(self) -> Router:
        return self._router

    @property
    def client(self) -> GoodDayClient:
        return self._client

    # -- main loop --

    async def run(self, *, start_transport: bool = True):
        """Process messages until EOF, SIGINT or SIGTERM."""
        log.info(f"Starting {Config.SERVER_NAME} v{Config.SERVER_VERSION} api={self._client.base_url}")

        if start_transport:
            await self._transport.start()
        self._install_signal_handlers()

        self._running = True
        log.info(f"Server ready — tools={self._router.tool_count}")

        try:
            while self._running:
                msg = await self._transport.read_message()
                if msg is None:
                    log.info("EOF on stdin — shutting down")
                    break
                await self.handle_message(msg)

        except asyncio.CancelledError:
            log.info("Server cancelled")
        except Exception as exc:
            log.error(f"Server error: {exc}", exc_info=True)
            raise
        finally:
            await self.shutdown()

    def _install_signal_handlers(self):
        self._main_task = asyncio.current_task()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                pass

    def _on_signal(self, sig):
        log.info(f"Received {signal.Signals(sig).name} — shutting down")
        self._running = False
        if self._main_task and not self._main_task.done():
            self._main_task.cancel()

    async def handle_message(self, msg: Any):
        """Process a single inbound message and write any response."""
        if isinstance(msg, MalformedMessage):
            await self._transport.write_message(
                make_error(None, PARSE_ERROR, f"Parse error: {msg.error}")
            )
            return

        request_id = msg.get("id") if isinstance(msg, dict) else None

        try:
            msg_type = validate_message(msg)

            if msg_type in ("response", "error"):
                # This server never issues requests, so replies are unexpected
                log.debug(f"Ignoring inbound {msg_type} id={request_id}")
                return

            result = await self._router.route(msg)

            if msg_type == "notification" or result is None:
                return

            await self._transport.write_message(make_response(request_id, result))

        except ProtocolError as exc:
            log.warning(f"Protocol error: {exc.message} (code={exc.code})")
            if request_id is not None:
                await self._transport.write_message(
                    make_error(request_id, exc.code, exc.message, exc.data)
                )

        except Exception as exc:
            log.error(f"Unhandled error: {exc}", exc_info=True)
            if request_id is not None:
                await self._transport.write_message(
                    make_error(request_id, INTERNAL_ERROR, str(exc))
                )

    async def shutdown(self):
        """Graceful shutdown — close transport and HTTP client."""
        if self._closed:
            return
        self._closed = True
        self._running = False

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass

        await self._transport.close()
        await self._client.aclose()
        log.info("Server stopped")

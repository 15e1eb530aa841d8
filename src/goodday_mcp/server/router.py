"""
Method Router — Dispatch MCP methods to handlers

Routes:
  initialize                 -> server capabilities handshake
  notifications/initialized  -> notification (no response)
  notifications/cancelled    -> notification (no response)
  ping                       -> pong
  tools/list                 -> registered tool definitions
  tools/call                 -> tool handler dispatch
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from goodday_mcp.config import Config
from goodday_mcp.server.logger import get_logger
from goodday_mcp.server.protocol import (
    METHOD_NOT_FOUND,
    ProtocolError,
    initialize_result,
    parse_tool_call,
    tool_error,
    tools_list_result,
)

log = get_logger("router")

ToolHandler = Callable[[str, Dict[str, Any]], Awaitable[Dict[str, Any]]]

_NOTIFICATIONS = frozenset({
    "initialized", "notifications/initialized", "notifications/cancelled",
})


class Router:
    """MCP method dispatcher."""

    def __init__(self):
        self._tools: List[Dict[str, Any]] = []
        self._tool_handlers: List[Tuple[Set[str], ToolHandler]] = []
        self.initialized = False

    def register_tools_module(self, tools_list: List[Dict[str, Any]], handler: ToolHandler):
        """Register a catalog of tool definitions served by one handler."""
        self._tools.extend(tools_list)
        self._tool_handlers.append(({t["name"] for t in tools_list}, handler))
        log.info(f"Registered {len(tools_list)} tools: {[t['name'] for t in tools_list]}")

    async def route(self, msg: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Route a validated request or notification.
        Returns the result payload, or None for notifications.
        """
        method = msg.get("method", "")
        params = msg.get("params") or {}

        if method == "initialize":
            return self._handle_initialize(params)

        if method in _NOTIFICATIONS:
            if method != "notifications/cancelled":
                self.initialized = True
            return None

        if method == "ping":
            return {}

        if method == "tools/list":
            return tools_list_result(self._tools)

        if method == "tools/call":
            return await self._handle_tools_call(params)

        raise ProtocolError(METHOD_NOT_FOUND, f"Unknown method: {method}")

    def _handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        log.info(
            f"Client initialize: {params.get('clientInfo', {}).get('name', '?')} "
            f"protocol={params.get('protocolVersion', '?')}"
        )
        return initialize_result(
            server_name=Config.SERVER_NAME,
            server_version=Config.SERVER_VERSION,
            protocol_version=Config.PROTOCOL_VERSION,
        )

    async def _handle_tools_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name, args = parse_tool_call(params)

        for tool_names, handler in self._tool_handlers:
            if name in tool_names:
                try:
                    return await handler(name, args)
                except Exception as exc:
                    log.error(f"Tool {name} error: {exc}", exc_info=True)
                    return tool_error(f"❌ Error in {name}: {exc}")

        # Unknown tools fail this call only; the session stays usable
        log.warning(f"Unknown tool requested: {name}")
        return tool_error(f"❌ Unknown tool: {name}")

    @property
    def tool_count(self) -> int:
        return len(self._tools)

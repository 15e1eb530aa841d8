"""
GoodDay MCP Tools

Modules:
  task_tools  — project, user, task and health tools backed by the GoodDay API
"""

from goodday_mcp.server.protocol import tool_error
from goodday_mcp.tools import task_tools

ALL_TOOLS = list(task_tools.TOOLS)

_DISPATCH = {tool_def["name"]: task_tools.handle_tool for tool_def in task_tools.TOOLS}


async def handle_tool(name: str, args: dict) -> dict:
    """Unified dispatcher across all tool modules."""
    handler = _DISPATCH.get(name)
    if handler:
        return await handler(name, args)
    return tool_error(f"❌ Unknown tool: {name}")

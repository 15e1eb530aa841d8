"""
JSON-RPC 2.0 Protocol — MCP message construction and validation

Handles:
- Response/error construction for the stdio transport
- Inbound message classification
- tools/call parameter extraction
- Tool results as a tagged variant: ok text or error text (isError)
"""

from typing import Any, Dict, List, Optional, Tuple, Union

JSONRPC_VERSION = "2.0"

RequestId = Union[int, str]


class ProtocolError(Exception):
    """JSON-RPC protocol error"""
    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)


# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def validate_message(msg: Any) -> str:
    """
    Classify an inbound JSON-RPC 2.0 message.
    Returns 'request', 'notification', 'response' or 'error'; raises ProtocolError otherwise.
    """
    if not isinstance(msg, dict):
        raise ProtocolError(INVALID_REQUEST, "Message must be a JSON object")

    if msg.get("jsonrpc") != JSONRPC_VERSION:
        raise ProtocolError(INVALID_REQUEST, f"Expected jsonrpc={JSONRPC_VERSION}")

    if "method" in msg:
        if not isinstance(msg["method"], str):
            raise ProtocolError(INVALID_REQUEST, "Method must be a string")
        return "request" if "id" in msg else "notification"
    if "id" in msg and "result" in msg:
        return "response"
    if "id" in msg and "error" in msg:
        return "error"
    raise ProtocolError(INVALID_REQUEST, "Cannot determine message type")


def make_response(request_id: RequestId, result: Any) -> Dict[str, Any]:
    """Build a JSON-RPC success response."""
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def make_error(
    request_id: Optional[RequestId],
    code: int,
    message: str,
    data: Any = None,
) -> Dict[str, Any]:
    """Build a JSON-RPC error response. request_id is None when it could not be read."""
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def parse_tool_call(params: Any) -> Tuple[str, Dict[str, Any]]:
    """Extract (name, arguments) from tools/call params."""
    if not isinstance(params, dict):
        raise ProtocolError(INVALID_PARAMS, "tools/call params must be an object")
    name = params.get("name")
    if not name or not isinstance(name, str):
        raise ProtocolError(INVALID_PARAMS, "Missing tool name")
    args = params.get("arguments") or {}
    if not isinstance(args, dict):
        raise ProtocolError(INVALID_PARAMS, f"Arguments for {name} must be an object")
    return name, args


# --- MCP-specific message builders ---

def initialize_result(
    server_name: str,
    server_version: str,
    protocol_version: str,
) -> Dict[str, Any]:
    """Build the MCP initialize result. Only the tools capability is offered."""
    return {
        "protocolVersion": protocol_version,
        "capabilities": {"tools": {"listChanged": False}},
        "serverInfo": {"name": server_name, "version": server_version},
    }


def tools_list_result(tools: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"tools": tools}


def text_content(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


def tool_ok(text: str) -> Dict[str, Any]:
    """Successful tools/call result: one text block."""
    return {"content": [text_content(text)]}


def tool_error(text: str) -> Dict[str, Any]:
    """Failed tools/call result: one text block flagged isError."""
    return {"content": [text_content(text)], "isError": True}

"""GoodDay REST API client."""

from goodday_mcp.api.client import GoodDayClient, RemoteRequestError

__all__ = ["GoodDayClient", "RemoteRequestError"]

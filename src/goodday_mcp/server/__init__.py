"""GoodDay MCP Server — raw JSON-RPC over stdio."""

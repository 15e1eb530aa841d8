"""GoodDay MCP — GoodDay project management tools for AI assistants."""

__version__ = "0.1.0"

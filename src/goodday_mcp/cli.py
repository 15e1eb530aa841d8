"""
GoodDay MCP CLI

Commands:
    goodday-mcp init        Create ~/.goodday-mcp/ and a config.env template
    goodday-mcp server      Start the MCP server (stdio mode)
    goodday-mcp health      Check that the GoodDay API is reachable
    goodday-mcp mcp-config  Print Claude Desktop/Code JSON config
"""

import asyncio
import json
import shutil
import sys

import click

from goodday_mcp import __version__
from goodday_mcp.config import Config, ConfigurationError


def _client_from_config():
    from goodday_mcp.api.client import GoodDayClient

    try:
        api_key = Config.require_api_key()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))
    return GoodDayClient(
        api_key,
        Config.API_URL,
        default_from_user=Config.DEFAULT_FROM_USER,
    )


@click.group()
@click.version_option(version=__version__, prog_name="goodday-mcp")
def main():
    """GoodDay project management tools over MCP."""
    pass


@main.command()
def init():
    """Create ~/.goodday-mcp/ and a config.env template."""
    Config.ensure_dirs()

    config_env = Config.DATA_DIR / "config.env"
    if not config_env.exists():
        config_env.write_text(
            "# GoodDay MCP Configuration\n"
            "# Environment variables take precedence over this file.\n"
            "\n"
            "# GOODDAY_API_KEY=\n"
            f"# GOODDAY_API_URL={Config.DEFAULT_API_URL}\n"
            "# GOODDAY_DEFAULT_FROM_USER=\n"
            "# GOODDAY_LOG_LEVEL=INFO\n"
        )

    click.echo(f"GoodDay MCP initialized at {Config.DATA_DIR}")
    click.echo(f"  Config: {config_env}")
    click.echo(f"  Logs:   {Config.LOG_DIR}")
    click.echo()
    click.echo("Next: set GOODDAY_API_KEY in config.env or your environment,")
    click.echo("then run `goodday-mcp mcp-config` to get the JSON snippet.")


@main.command()
def server():
    """Start the GoodDay MCP server (stdio mode)."""
    from goodday_mcp import tools
    from goodday_mcp.server.server import MCPServer
    from goodday_mcp.tools import task_tools

    client = _client_from_config()

    async def _run():
        srv = MCPServer(client)
        task_tools.set_client(client)
        srv.register_tools(tools.ALL_TOOLS, tools.handle_tool)
        await srv.run()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        click.echo(f"GoodDay MCP server failed: {exc}", err=True)
        sys.exit(1)


@main.command()
def health():
    """Check that the configured GoodDay API answers."""
    client = _client_from_config()

    async def _check():
        async with client:
            return await client.health_check()

    if asyncio.run(_check()):
        click.echo(f"GoodDay API reachable: {client.base_url}")
        return
    click.echo(f"GoodDay API unreachable: {client.base_url}", err=True)
    sys.exit(1)


@main.command("mcp-config")
def mcp_config():
    """Print MCP config JSON for Claude Desktop or Claude Code."""
    command = shutil.which("goodday-mcp")
    args = ["server"] if command else ["-m", "goodday_mcp", "server"]

    config = {
        "mcpServers": {
            "goodday": {
                "command": command or sys.executable,
                "args": args,
                "env": {"GOODDAY_API_KEY": "<your GoodDay API token>"},
            }
        }
    }

    click.echo("Add this to your Claude settings:\n")
    click.echo(json.dumps(config, indent=2))
    click.echo()
    click.echo("Claude Desktop: Settings > Developer > Edit Config")
    click.echo("Claude Code:    .claude/settings.json or ~/.claude/settings.json")


if __name__ == "__main__":
    main()

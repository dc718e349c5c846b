"""Azure DevOps MCP Server - Expose work items, teams and boards to AI assistants."""
import sys
import asyncio
import logging
import traceback
from typing import Any

import httpx
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent
from pydantic import ValidationError

from . import tools
from . import handlers
from .client import AzureDevOpsClient
from .config import get_settings
from .errors import AzureDevOpsError


settings = get_settings()

# Configure logging to stderr (stdout carries the MCP stream)
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr,
    force=True
)
logger = logging.getLogger("azdo-mcp")

logger.info(f"MCP Server starting with AZDO_BASE_URL: {settings.base_url}")
if settings.access_token:
    logger.info("MCP Server configured with bearer token authentication")
elif settings.pat:
    logger.info("MCP Server configured with Personal Access Token authentication")
else:
    logger.warning("MCP Server running without credentials; Azure DevOps calls will be rejected")


# MCP Server instance
app = Server("azdo-mcp")


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available MCP tools for Azure DevOps."""
    return tools.get_tools()


# ============================================================================
# Tool Handlers
# ============================================================================


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle MCP tool calls by delegating to the handler map."""
    logger.info(f"Tool call: {name} with arguments: {arguments}")

    handler = handlers.HANDLERS.get(name)
    if not handler:
        logger.warning(f"Unknown tool requested: {name}")
        return [TextContent(type="text", text=f"Unknown tool: {name}")]

    current_settings = get_settings()
    arguments = handlers.apply_scope_defaults(name, arguments, current_settings)

    async with AzureDevOpsClient(current_settings) as client:
        try:
            return await handler(arguments, client)

        except ValidationError as e:
            logger.error(f"Invalid arguments for {name}: {e}")
            return [TextContent(type="text", text=f"Error: Invalid arguments: {e}")]

        except AzureDevOpsError as e:
            logger.error(f"Azure DevOps error during {name} call:")
            logger.error(f"  Error type: {type(e).__name__}")
            logger.error(f"  Error message: {str(e)}")
            return [TextContent(type="text", text=f"Error: {str(e)}")]

        except httpx.RequestError as e:
            # Network/connection errors
            logger.error(f"Request error during {name} call:")
            logger.error(f"  Error type: {type(e).__name__}")
            logger.error(f"  Error message: {str(e)}")
            logger.error(f"  Traceback: {traceback.format_exc()}")
            return [TextContent(type="text", text=f"Error: Connection failed - {str(e)}")]

        except Exception as e:
            # Catch-all for unexpected errors
            logger.error(f"Unexpected error during {name} call:")
            logger.error(f"  Error type: {type(e).__name__}")
            logger.error(f"  Error message: {str(e)}")
            logger.error(f"  Arguments: {arguments}")
            logger.error(f"  Traceback:\n{traceback.format_exc()}")
            return [TextContent(type="text", text=f"Error: {type(e).__name__}: {str(e)}")]


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()

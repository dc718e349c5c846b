"""Azure DevOps MCP Server - Model Context Protocol integration.

This package provides MCP (Model Context Protocol) integration for Azure
DevOps, enabling AI assistants to query and edit work items and browse
teams, boards and iterations.

Modules:
- server: stdio MCP server implementation
- tools: MCP tool definitions
- handlers: Tool implementation handlers
- work_items, teams, client: Azure DevOps REST access
- query, batching, simplify, formatters: the work item query and projection pipeline
"""

__version__ = "1.0.0"

from . import formatters
from . import simplify
from . import query
from . import batching
from . import tools
from . import handlers

__all__ = ["formatters", "simplify", "query", "batching", "tools", "handlers", "__version__"]

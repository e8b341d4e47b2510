"""
Capacities MCP server: exposes Capacities note-taking operations as MCP tools.
"""

from typing import Optional, Mapping

from capacities_mcp.config import Config
from capacities_mcp.server import CapacitiesServer
from capacities_mcp.tools import ToolAdapter, ToolSpec, TOOL_DEFINITIONS

__version__ = "1.0.0"


def create_server(environ: Optional[Mapping[str, str]] = None) -> CapacitiesServer:
    """Create and configure a server instance from the environment."""
    return CapacitiesServer(Config.load(environ))


__all__ = ['CapacitiesServer', 'Config', 'ToolAdapter', 'ToolSpec', 'TOOL_DEFINITIONS', 'create_server']

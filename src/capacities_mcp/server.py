# File: capacities_mcp/server.py

"""
Main server implementation for the Capacities MCP server.
"""

import logging
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server import Server, NotificationOptions
from mcp.server.models import InitializationOptions

from .config import Config
from .tools import ToolAdapter
from .transports import Transport, get_transport
from .types import CapacitiesError

logger = logging.getLogger(__name__)


class CapacitiesServer:
    """MCP server exposing Capacities note-taking operations as tools."""

    def __init__(self, config: Config, adapter: Optional[ToolAdapter] = None):
        self.config = config
        self.adapter = adapter or ToolAdapter(config)
        self.server = Server(config.server.name, version=config.server.version)
        self._register_handlers()

    def _register_handlers(self) -> None:
        """Register tool handlers with the MCP server."""

        @self.server.list_tools()
        async def handle_list_tools() -> List[types.Tool]:
            logger.debug("Tool list requested")
            return self.adapter.list_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
            # Errors propagate so the protocol layer reports them as error results.
            try:
                return await self.adapter.invoke(name, arguments)
            except CapacitiesError as e:
                logger.error(f"Tool {name} failed: {e}")
                raise

    def create_initialization_options(self) -> InitializationOptions:
        return self.server.create_initialization_options(
            notification_options=NotificationOptions()
        )

    async def run(self, transport: Optional[Transport] = None) -> None:
        """Run the server on the configured transport."""
        transport = transport or get_transport(self.config)
        logger.info(f"Starting {self.config.server.name} v{self.config.server.version} ({self.config.transport})")
        if not self.config.default_space_id:
            logger.warning("CAPACITIES_SPACE_ID is not set; tools need an explicit spaceId")
        try:
            await transport.serve(self)
        except Exception as e:
            logger.error(f"Server error: {e}", exc_info=True)
            raise


async def main(config: Optional[Config] = None) -> None:
    """Main entry point."""
    config = config or Config.load()
    await CapacitiesServer(config).run()

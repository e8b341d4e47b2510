"""
Transports that carry MCP traffic to the server.

Both implementations drive the same ``mcp.server.Server`` instance; only the
byte channel differs.
"""

import contextlib
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import uvicorn
from mcp.server.stdio import stdio_server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from .config import Config
from .types import ConfigError

if TYPE_CHECKING:
    from .server import CapacitiesServer

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Base class for transports"""

    @abstractmethod
    async def serve(self, server: 'CapacitiesServer') -> None:
        """Serve MCP requests until the channel closes"""
        pass


class StdioTransport(Transport):
    """One MCP session over stdin/stdout for the lifetime of the process."""

    async def serve(self, server: 'CapacitiesServer') -> None:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("Capacities MCP server started (stdio)")
            await server.server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )


class _MCPEndpoint:
    """ASGI endpoint handing each POST to the session manager."""

    def __init__(self, session_manager: StreamableHTTPSessionManager):
        self.session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.session_manager.handle_request(scope, receive, send)


class HttpTransport(Transport):
    """
    HTTP listener with a liveness probe on ``GET /`` and MCP on ``POST /mcp``.

    The session manager runs stateless, so every request gets a fresh
    transport and nothing is shared between requests.
    """

    def __init__(self, host: str = "0.0.0.0", port: int = 3000, log_level: str = "info"):
        self.host = host
        self.port = port
        self.log_level = log_level

    def build_app(self, server: 'CapacitiesServer') -> Starlette:
        session_manager = StreamableHTTPSessionManager(
            app=server.server,
            event_store=None,
            json_response=True,
            stateless=True
        )
        name = server.config.server.name

        async def health(request: Request) -> JSONResponse:
            return JSONResponse({"status": "ok", "name": name})

        @contextlib.asynccontextmanager
        async def lifespan(app: Starlette):
            async with session_manager.run():
                yield

        return Starlette(
            routes=[
                Route("/", health, methods=["GET"]),
                Route("/mcp", _MCPEndpoint(session_manager), methods=["POST"])
            ],
            lifespan=lifespan
        )

    async def serve(self, server: 'CapacitiesServer') -> None:
        app = self.build_app(server)
        config = uvicorn.Config(app, host=self.host, port=self.port, log_level=self.log_level)
        logger.info(f"Capacities MCP server running on http://{self.host}:{self.port}/mcp")
        await uvicorn.Server(config).serve()


def get_transport(config: Config) -> Transport:
    """Pick the transport named by the configuration."""
    if config.transport == "stdio":
        return StdioTransport()
    if config.transport == "http":
        return HttpTransport(port=config.port, log_level=config.log_level.lower())
    raise ConfigError(f"Unsupported transport: {config.transport}")

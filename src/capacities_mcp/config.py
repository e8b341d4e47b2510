"""
Configuration management for the Capacities MCP server.
Loads and validates settings from the environment (and a .env file) once at startup.
"""

import os
import logging
from typing import Optional, Dict, Any, Mapping
from dataclasses import dataclass, asdict, field
from dotenv import load_dotenv

from .types import ConfigError

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULT_API_BASE = "https://api.capacities.io"
DEFAULT_PORT = 3000
TRANSPORTS = ("stdio", "http")


def configure_logging(level: str = "INFO") -> None:
    """Send all log output to stderr; stdout carries the stdio protocol stream."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
        format=LOG_FORMAT
    )


@dataclass(frozen=True)
class ServerConfig:
    """MCP server-specific configuration."""
    name: str = "capacities-mcp-server"
    version: str = "1.0.0"


@dataclass(frozen=True)
class Config:
    """Process-wide settings, immutable after startup."""

    # Required settings
    token: str = field(repr=False)
    server: ServerConfig = field(default_factory=ServerConfig)

    # Optional settings with defaults
    default_space_id: Optional[str] = None
    api_base: str = DEFAULT_API_BASE
    transport: str = "stdio"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @classmethod
    def load(cls, environ: Optional[Mapping[str, str]] = None) -> 'Config':
        """
        Build the configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``. When omitted,
                a ``.env`` file in the working directory is loaded first.

        Raises:
            ConfigError: If the token is missing or a value is malformed.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        token = environ.get('CAPACITIES_TOKEN', '').strip()
        if not token:
            raise ConfigError("CAPACITIES_TOKEN env var is required")

        transport = environ.get('TRANSPORT', 'stdio').strip().lower() or 'stdio'
        if transport not in TRANSPORTS:
            raise ConfigError(
                f"Unsupported TRANSPORT '{transport}' (expected one of: {', '.join(TRANSPORTS)})"
            )

        port = cls._parse_port(environ.get('PORT'))

        config = cls(
            token=token,
            default_space_id=environ.get('CAPACITIES_SPACE_ID', '').strip() or None,
            api_base=(environ.get('CAPACITIES_API_BASE') or DEFAULT_API_BASE).rstrip('/'),
            transport=transport,
            port=port,
            log_level=environ.get('LOG_LEVEL', 'INFO').strip() or 'INFO'
        )
        logger.debug(f"Loaded configuration: {config}")
        return config

    @staticmethod
    def _parse_port(value: Optional[str]) -> int:
        """Parse the listening port, falling back to the default."""
        if value is None or not value.strip():
            return DEFAULT_PORT
        try:
            port = int(value)
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got '{value}'")
        if not 0 < port < 65536:
            raise ConfigError(f"PORT out of range: {port}")
        return port

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary, masking the credential."""
        config_dict = asdict(self)
        config_dict['token'] = '***'
        return config_dict

    def __str__(self) -> str:
        return (
            f"Config(transport={self.transport}, port={self.port}, "
            f"api_base={self.api_base}, default_space_id={self.default_space_id})"
        )

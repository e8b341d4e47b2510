#!/usr/bin/env python
import asyncio
import sys
import logging

from capacities_mcp.config import Config, configure_logging
from capacities_mcp.server import main
from capacities_mcp.types import ConfigError

logger = logging.getLogger("capacities_mcp")


def run():
    """Wrapper to handle configuration errors and keyboard interrupts."""
    configure_logging()
    try:
        config = Config.load()
    except ConfigError as e:
        logger.error(f"ERROR: {e}")
        sys.exit(1)

    configure_logging(config.log_level)
    try:
        asyncio.run(main(config))
    except KeyboardInterrupt:
        logger.info("Received exit request...")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()

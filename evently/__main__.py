"""Command line entry point for Evently database housekeeping."""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

import structlog
from dotenv import load_dotenv

from evently.database.connections import cleanup_database_manager, get_database_manager
from evently.errors import ConfigurationError
from evently.models.config import EventlyConfig


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure stdlib logging and route structlog through it."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event", "component"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


async def init_schema(config: EventlyConfig) -> int:
    """Create tables and indexes."""
    manager = get_database_manager(config)
    try:
        await manager.ensure_schema()
    finally:
        await cleanup_database_manager()
    logger.info("Schema is up to date")
    return 0


async def health(config: EventlyConfig) -> int:
    """Print connection health as JSON; non-zero exit when unhealthy."""
    manager = get_database_manager(config)
    try:
        report = await manager.health_check()
    finally:
        await cleanup_database_manager()
    print(json.dumps(report, indent=2))
    return 0 if report["overall"] != "unhealthy" else 1


COMMANDS = {
    "init-schema": init_schema,
    "health": health,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Run a housekeeping command."""
    load_dotenv()

    parser = argparse.ArgumentParser(prog="evently", description="Evently database tools")
    parser.add_argument("command", choices=sorted(COMMANDS), help="Command to run")
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"),
                        help="Logging level (default: LOG_LEVEL or INFO)")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    config = EventlyConfig()

    try:
        return asyncio.run(COMMANDS[args.command](config))
    except ConfigurationError as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())

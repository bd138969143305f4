"""Process entry point for the Huly MCP server."""

import asyncio
import logging
import sys

from .config import get_settings
from .exceptions import ConfigurationError
from .mcp.server import HulyMCPServer
from .observability.logging import configure_logging
from .observability.metrics import start_metrics_server
from .tracker.service import TrackerService

logger = logging.getLogger(__name__)


async def serve() -> None:
    settings = get_settings()
    tracker = TrackerService.from_settings(settings)
    server = HulyMCPServer(tracker, name=settings.app_name, workspace=settings.huly_workspace)
    try:
        await server.run_stdio()
    finally:
        await tracker.close()
        logger.info("Huly MCP Server stopped")


def main() -> None:
    settings = get_settings()

    configure_logging(
        environment=settings.environment,
        log_level=settings.get_log_level(),
    )

    try:
        settings.ensure_credentials()
    except ConfigurationError as e:
        logger.error("Fatal: %s", e)
        sys.exit(1)

    start_metrics_server(settings.huly_metrics_port)

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()

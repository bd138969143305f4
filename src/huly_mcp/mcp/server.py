"""MCP server exposing the Huly tracker tools."""

import json
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import Server

from ..observability.logging import clear_log_context, set_log_context
from ..observability.metrics import record_tool_call
from ..tracker.service import TrackerService
from .tools import execute_tool, get_tools

logger = logging.getLogger(__name__)


class ToolError(Exception):
    """Raised from the call_tool handler; the SDK turns it into an error result."""


def error_payload(exc: BaseException) -> str:
    return json.dumps({"error": str(exc)})


class HulyMCPServer:
    """Binds tracker tools to an MCP ``Server``."""

    def __init__(self, tracker: TrackerService, name: str = "huly-mcp-server", workspace: Optional[str] = None):
        self.tracker = tracker
        self.workspace = workspace
        self.server = Server(name)
        self._setup_handlers()

    async def handle_list_tools(self) -> List[types.Tool]:
        return get_tools()

    async def handle_call_tool(
        self, name: str, arguments: Optional[Dict[str, Any]] = None
    ) -> List[types.TextContent]:
        """Run a tool; failures raise ToolError carrying ``{"error": ...}``."""
        if not arguments:
            arguments = {}

        set_log_context(tool_name=name, request_id=uuid.uuid4().hex[:8], workspace=self.workspace)
        logger.info("Tool call: %s", name)

        start = time.perf_counter()
        try:
            result = await execute_tool(self.tracker, name, arguments)
        except Exception as e:
            record_tool_call(name, "error", time.perf_counter() - start)
            logger.error("Tool execution failed: %s - %s", name, str(e))
            raise ToolError(error_payload(e)) from e
        else:
            record_tool_call(name, "success", time.perf_counter() - start)
            return [types.TextContent(type="text", text=result)]
        finally:
            clear_log_context()

    def _setup_handlers(self):
        """Set up MCP protocol handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> List[types.Tool]:
            return await self.handle_list_tools()

        @self.server.call_tool()
        async def handle_call_tool(
            name: str, arguments: Optional[Dict[str, Any]] = None
        ) -> List[types.TextContent]:
            return await self.handle_call_tool(name, arguments)

    async def run_stdio(self) -> None:
        """Serve over stdin/stdout until the client disconnects."""
        from mcp.server.stdio import stdio_server

        async with stdio_server() as (read_stream, write_stream):
            logger.info("Huly MCP Server running on stdio")
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )

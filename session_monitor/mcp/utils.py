"""Shared utilities for the MCP server."""

from __future__ import annotations

# Standard Library
import logging
from typing import Any

# Third-Party Libraries
from mcp.server.fastmcp import Context


class DualLogger:
    """Logs messages to both the Python logger and the MCP client context.

    stdout belongs to the stdio transport, so local output goes through
    logging (stderr) rather than print().
    """

    def __init__(self, ctx: Context[Any, Any, Any], logger: logging.Logger | None = None) -> None:
        self.ctx = ctx
        self.logger = logger or logging.getLogger(__name__)

    async def info(self, message: str) -> None:
        self.logger.info(message)
        await self.ctx.info(message)

    async def debug(self, message: str) -> None:
        self.logger.debug(message)
        await self.ctx.debug(message)

    async def warning(self, message: str) -> None:
        self.logger.warning(message)
        await self.ctx.warning(message)

    async def error(self, message: str) -> None:
        self.logger.error(message)
        await self.ctx.error(message)

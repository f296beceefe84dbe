"""MCP server entry point for claude-session-monitor."""

from __future__ import annotations

from session_monitor.mcp.server import main, server

__all__ = ['main', 'server']

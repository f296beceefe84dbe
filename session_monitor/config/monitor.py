"""
Monitor configuration.

Extends base configuration; shared by the CLI and the MCP server.
"""

from __future__ import annotations

from session_monitor.config.base import BaseMonitorSettings, lazy_settings


class MonitorSettings(BaseMonitorSettings):
    """Session monitor configuration."""

    pass  # Empty for now, room for surface-specific settings


# Module-level singleton (lazy-loaded)
settings = lazy_settings(MonitorSettings)

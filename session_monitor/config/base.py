"""
Base configuration for the session monitor.

Shared settings and helper functions for all entry points (CLI, MCP).
"""

from __future__ import annotations

import os
import pathlib
from typing import TypeVar

import lazy_object_proxy
import pydantic
import pydantic_settings

T = TypeVar('T', bound='BaseMonitorSettings')


class BaseMonitorSettings(pydantic_settings.BaseSettings):
    """Shared configuration across all entry points (CLI, MCP)."""

    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix='CLAUDE_MONITOR_',
        env_file_encoding='utf-8',
        case_sensitive=True,  # Fail fast on misconfiguration
        extra='forbid',  # Reject unknown keys in a loaded .env file
    )

    # Application metadata
    APP_NAME: str = 'claude-session-monitor'
    VERSION: str = '0.1.0'

    # Filesystem view of the external CLI
    CLAUDE_HOME: pathlib.Path = pathlib.Path.home() / '.claude'

    # Process discovery
    PROCESS_NAME: str = 'claude'
    MONITOR_PROCESS_NAME: str = 'claude-monitor'
    PROCESS_START_GRACE_SECONDS: float = 5.0

    # Poll loop
    POLL_INTERVAL_SECONDS: float = 3.5
    TAIL_ENTRY_COUNT: int = 20
    SUBSCRIBER_QUEUE_SIZE: int = 16
    NOTIFICATION_COOLDOWN_SECONDS: float = 30.0

    # Recency heuristics - the log is the only liveness signal there is
    PROMPT_RECENCY_SECONDS: float = 30.0  # Turn-initiation signals (prompts, tool results)
    ACTIVITY_RECENCY_SECONDS: float = 20.0  # In-flight generation / resolved tool calls
    FILE_TOUCH_RECENCY_SECONDS: float = 8.0  # Log mtime override applied during snapshot enrichment

    # Display truncation
    FIRST_PROMPT_MAX_CHARS: int = 100
    LATEST_MESSAGE_MAX_CHARS: int = 200
    NOTIFICATION_TITLE_MAX_CHARS: int = 60

    @pydantic.field_validator(
        'POLL_INTERVAL_SECONDS',
        'PROMPT_RECENCY_SECONDS',
        'ACTIVITY_RECENCY_SECONDS',
        'FILE_TOUCH_RECENCY_SECONDS',
    )
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        """Intervals and recency windows must be positive."""
        if v <= 0:
            raise ValueError('must be greater than 0')
        return v

    @pydantic.field_validator('TAIL_ENTRY_COUNT', 'SUBSCRIBER_QUEUE_SIZE')
    @classmethod
    def validate_positive_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError('must be at least 1')
        return v

    @pydantic.field_validator('NOTIFICATION_COOLDOWN_SECONDS', 'PROCESS_START_GRACE_SECONDS')
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError('must not be negative')
        return v

    @property
    def projects_dir(self) -> pathlib.Path:
        """~/.claude/projects - one subdirectory per (encoded) working directory."""
        return self.CLAUDE_HOME / 'projects'

    @property
    def settings_file(self) -> pathlib.Path:
        """~/.claude/settings.json - source of the permission allow-list."""
        return self.CLAUDE_HOME / 'settings.json'


def get_settings(settings_class: type[T], env_file: str | None = None) -> T:
    """
    Factory for creating settings with dynamic .env file loading.

    LOAD_ENV_FILE environment variable specifies custom .env file path.
    When unset (production), loads from environment variables only.

    Args:
        settings_class: Settings class to instantiate
        env_file: Optional path to .env file (overrides LOAD_ENV_FILE)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If specified .env file doesn't exist
    """
    env_file_path = env_file or os.getenv('LOAD_ENV_FILE')

    if not env_file_path:
        return settings_class()  # No .env file, load from environment only

    resolved_path = pathlib.Path(env_file_path).resolve()
    if not resolved_path.exists():
        raise FileNotFoundError(f'Environment file not found: {resolved_path}')

    return settings_class(_env_file=resolved_path)


def lazy_settings(settings_class: type[T]) -> T:
    """
    Lazy settings - defers instantiation until first access.

    Args:
        settings_class: Settings class to instantiate

    Returns:
        Proxy that instantiates settings on first access
    """
    return lazy_object_proxy.Proxy(lambda: get_settings(settings_class))

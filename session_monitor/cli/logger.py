"""
CLI logging setup.

Services log through module-level loggers; the CLI decides what reaches the
terminal. Log lines go to stderr so stdout stays clean for --format json.
"""

from __future__ import annotations

import logging

LOG_FORMAT = '[%(levelname)s] %(name)s: %(message)s'


def configure_logging(verbose: bool = False) -> None:
    """
    Configure the root logger once per CLI invocation.

    Args:
        verbose: If True, show debug messages. If False, only warnings/errors.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        force=True,
    )

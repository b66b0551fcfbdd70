"""Core Engagement Tracker utilities.

This module exports core utilities for use throughout the application.
"""

from engagetrack.core.config import Settings, get_settings
from engagetrack.core.logging import (
    bind_actor,
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "bind_actor",
    "bind_correlation_id",
    "clear_context",
]

"""
SpamShield - Utilities Package
==============================

Shared async helpers, Discord error logging and duration formatting.
"""

from .async_utils import create_safe_task
from .discord_errors import log_http_error
from .duration import format_duration, format_duration_long, format_duration_ms

__all__ = [
    "create_safe_task",
    "log_http_error",
    "format_duration",
    "format_duration_long",
    "format_duration_ms",
]

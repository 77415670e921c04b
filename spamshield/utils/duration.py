"""
Duration Formatting
===================

Human-readable rendering of the millisecond durations used in config
(time window, timeout, retention) and of elapsed account/membership ages.

Usage:
    from spamshield.utils.duration import format_duration, format_duration_ms

    format_duration(131400)          # "1d 12h 30m"
    format_duration_ms(86400000)     # "1d"
    format_duration_long(86400)      # "24 hours"
"""

from typing import Optional

from spamshield.core.constants import (
    MS_PER_SECOND,
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
)


SECONDS_PER_WEEK = 7 * SECONDS_PER_DAY


# =============================================================================
# Formatting Functions
# =============================================================================

def format_duration(
    seconds: Optional[int],
    max_units: int = 3,
    show_seconds: bool = False,
) -> str:
    """
    Format seconds into a human-readable duration string.

    Args:
        seconds: Duration in seconds, or None for permanent.
        max_units: Maximum number of time units to show (default 3).
        show_seconds: Whether to show seconds in output (default False).

    Returns:
        Formatted string like "1d 12h 30m" or "Permanent".

    Examples:
        >>> format_duration(3661)
        "1h 1m"
        >>> format_duration(45)
        "< 1m"
        >>> format_duration(45, show_seconds=True)
        "45s"
    """
    if seconds is None:
        return "Permanent"

    if seconds <= 0:
        return "0m" if not show_seconds else "0s"

    if seconds < SECONDS_PER_MINUTE and not show_seconds:
        return "< 1m"

    parts = []

    if seconds >= SECONDS_PER_WEEK:
        weeks, seconds = divmod(seconds, SECONDS_PER_WEEK)
        parts.append(f"{weeks}w")

    if seconds >= SECONDS_PER_DAY and len(parts) < max_units:
        days, seconds = divmod(seconds, SECONDS_PER_DAY)
        parts.append(f"{days}d")

    if seconds >= SECONDS_PER_HOUR and len(parts) < max_units:
        hours, seconds = divmod(seconds, SECONDS_PER_HOUR)
        parts.append(f"{hours}h")

    if seconds >= SECONDS_PER_MINUTE and len(parts) < max_units:
        minutes, seconds = divmod(seconds, SECONDS_PER_MINUTE)
        parts.append(f"{minutes}m")

    if show_seconds and seconds > 0 and len(parts) < max_units:
        parts.append(f"{seconds}s")

    return " ".join(parts) if parts else ("0s" if show_seconds else "< 1m")


def format_duration_ms(milliseconds: Optional[int], show_seconds: bool = True) -> str:
    """Format a millisecond duration; sub-second remainders are dropped."""
    if milliseconds is None:
        return "Permanent"
    return format_duration(milliseconds // MS_PER_SECOND, show_seconds=show_seconds)


def format_duration_long(seconds: Optional[int]) -> str:
    """
    Format seconds as a single spelled-out unit, for user-facing text.

    Examples:
        >>> format_duration_long(86400)
        "24 hours"
        >>> format_duration_long(1209600)
        "14 days"
    """
    if seconds is None:
        return "Permanent"

    if seconds < SECONDS_PER_HOUR:
        minutes = seconds // SECONDS_PER_MINUTE
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    elif seconds <= SECONDS_PER_DAY:
        hours = seconds // SECONDS_PER_HOUR
        return f"{hours} hour{'s' if hours != 1 else ''}"
    else:
        days = seconds // SECONDS_PER_DAY
        return f"{days} day{'s' if days != 1 else ''}"


__all__ = [
    "SECONDS_PER_WEEK",
    "format_duration",
    "format_duration_ms",
    "format_duration_long",
]

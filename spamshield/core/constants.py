"""
SpamShield - Centralized Constants
==================================

Bot-wide constants. Anti-spam thresholds and patterns live in
spamshield/services/antispam/constants.py.
"""

import os

from zoneinfo import ZoneInfo


# =============================================================================
# Time Constants
# =============================================================================

MS_PER_SECOND = 1000
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400

MAX_TIMEOUT_MS = 28 * SECONDS_PER_DAY * MS_PER_SECOND
"""Discord refuses communication timeouts longer than 28 days."""

LOCAL_TZ = ZoneInfo(os.getenv("LOG_TIMEZONE", "America/New_York"))
"""Timezone for message timestamps and embed times."""


# =============================================================================
# Embed Constants
# =============================================================================

FOOTER_TEXT = "SpamShield Anti-Spam"
"""Footer text displayed on all embeds."""


class EmbedColors:
    """Standardized color palette for Discord embeds."""

    GREEN = 0x00FF00
    RED = 0xFF0000
    BLUE = 0x0000FF
    ORANGE = 0xFFA500
    AMBER = 0xFF9900
    INFO_BLUE = 0x0099FF

    # Semantic aliases
    SUCCESS = GREEN
    DISABLED = RED
    INCIDENT = BLUE
    ALERT = ORANGE
    INFO = INFO_BLUE
    REMOVED = AMBER


__all__ = [
    "MS_PER_SECOND",
    "SECONDS_PER_MINUTE",
    "SECONDS_PER_HOUR",
    "SECONDS_PER_DAY",
    "MAX_TIMEOUT_MS",
    "LOCAL_TZ",
    "FOOTER_TEXT",
    "EmbedColors",
]

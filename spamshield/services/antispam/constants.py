"""
Anti-Spam Constants
===================

Static patterns, rule thresholds and notification texts for the
compromised-account detector.
"""

import re
from typing import FrozenSet, Pattern, Tuple


# =============================================================================
# URL Classification
# =============================================================================

URL_PATTERN: Pattern = re.compile(r"https?://\S+", re.IGNORECASE)
"""Any http(s) token up to the next whitespace."""

SUSPICIOUS_DOMAINS: Tuple[str, ...] = (
    # URL shorteners
    "bit.ly",
    "tinyurl.com",
    "goo.gl",
    "t.co",
    "ow.ly",
    "short.link",
    # Server invites
    "discord.gg",
    "discordapp.com/invite",
    "discord.com/invite",
    # Common phishing targets
    "steampowered.com",
    "steamcommunity.com",
)
"""Substring deny-list checked before the trust list."""

DISPOSABLE_DOMAIN_MARKERS: Tuple[str, ...] = (".tk", ".ml")
"""Free-registration TLDs favoured by throwaway phishing hosts."""

MIN_DOMAIN_LENGTH = 6
"""Hosts shorter than this are treated as suspicious."""

FORBIDDEN_HOST_CHARS: FrozenSet[str] = frozenset(
    " <>^|%#/?@[]\\\x7f" + "".join(chr(c) for c in range(0x20))
)
"""Characters a WHATWG URL parser rejects in a host. `:` is left out so IPv6 literals parse."""


# =============================================================================
# Mass Mentions
# =============================================================================

MASS_MENTION_TOKENS: Tuple[str, ...] = ("@everyone", "@here")


# =============================================================================
# Rule Thresholds
# =============================================================================

MIN_CHANNELS = 2
"""Most rules only fire once activity spans this many channels."""

SUSPICIOUS_LINK_LIMIT = 2
IMAGE_LIMIT = 4
MASS_MENTION_LIMIT = 3

VERY_RECENT_WINDOW_MS = 10000
VERY_RECENT_MESSAGE_LIMIT = 5

THREAT_CHANNEL_LIMIT = 3
"""Channel spread for a single suspicious link combined with a mass mention."""


# =============================================================================
# Quarantine
# =============================================================================

QUARANTINE_REASON = "Anti-spam: Compromised account detected"
SNAPSHOT_REASON = "Anti-spam detection"

REQUIRED_PERMISSIONS: Tuple[str, ...] = ("manage_roles", "moderate_members")
"""Bot permissions needed before stripping roles or applying a timeout."""

MAX_LOGGED_ROLES = 10
"""Roles listed in the incident log embed."""

DEBUG_RECENT_ENTRIES = 5
"""Ledger entries shown by `!antispam debug`."""


# =============================================================================
# Display
# =============================================================================

DETECTION_TYPES: Tuple[str, ...] = (
    "• Multi-channel image spam",
    "• Suspicious link sharing",
    "• Mass @everyone/@here pings",
    "• Rapid cross-channel posting",
)


__all__ = [
    "URL_PATTERN",
    "SUSPICIOUS_DOMAINS",
    "DISPOSABLE_DOMAIN_MARKERS",
    "MIN_DOMAIN_LENGTH",
    "FORBIDDEN_HOST_CHARS",
    "MASS_MENTION_TOKENS",
    "MIN_CHANNELS",
    "SUSPICIOUS_LINK_LIMIT",
    "IMAGE_LIMIT",
    "MASS_MENTION_LIMIT",
    "VERY_RECENT_WINDOW_MS",
    "VERY_RECENT_MESSAGE_LIMIT",
    "THREAT_CHANNEL_LIMIT",
    "QUARANTINE_REASON",
    "SNAPSHOT_REASON",
    "REQUIRED_PERMISSIONS",
    "MAX_LOGGED_ROLES",
    "DEBUG_RECENT_ENTRIES",
    "DETECTION_TYPES",
]

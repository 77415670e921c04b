"""
SpamShield - Events Package
===========================

Event handler Cogs.

DESIGN:
    Each event file contains a Cog class with @commands.Cog.listener decorators.
    Cogs are loaded dynamically by the bot using load_extension().

    Event routing:
    - messages.py: Message create -> anti-spam check
"""

# =============================================================================
# Event Cog Registry
# =============================================================================

EVENT_COGS = [
    "spamshield.events.messages",
]
"""
List of event cog module paths for dynamic loading.

DESIGN:
    Bot iterates this list and calls load_extension() for each.
"""


__all__ = [
    "EVENT_COGS",
]

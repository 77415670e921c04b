"""
SpamShield - Commands Package
=============================

Operator command implementations, as discord.py Cogs.

DESIGN:
    Each command file contains a Cog class with related commands.
    Cogs are loaded dynamically by the bot using load_extension().

Available Commands:
    !antispam status|restore|toggle|debug|domains: anti-spam management
"""

# =============================================================================
# Command Cog Registry
# =============================================================================

COMMAND_COGS = [
    "spamshield.commands.antispam",
]
"""
List of command cog module paths for dynamic loading.

DESIGN:
    Bot iterates this list and calls load_extension() for each.
"""


__all__ = [
    "COMMAND_COGS",
]

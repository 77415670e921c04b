"""
SpamShield - Services Package
=============================

DESIGN:
    Services are standalone classes owning their own state. They should:
    - Be async-compatible for non-blocking I/O
    - Handle their own error cases gracefully
    - Be constructed once in bot.py and shared with cogs

Available Services:
    AntiSpamService: Compromised-account detection, quarantine and restoration
"""

from .antispam import AntiSpamService

__all__ = ["AntiSpamService"]

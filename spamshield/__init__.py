"""
SpamShield
==========

Discord bot that detects compromised accounts spamming across channels
and quarantines them until an operator restores their roles.
"""

__version__ = "1.0.0"

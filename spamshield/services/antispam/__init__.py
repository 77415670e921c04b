"""
SpamShield - Anti-Spam Package
==============================

Compromised-account detection engine.

Modules:
    urls         URL extraction and domain classification
    ledger       Per-user rolling activity log
    classifier   Seven-rule spam classifier
    snapshots    Pre-quarantine role snapshots
    gateway      Guild effect interfaces + discord.py adapter
    quarantine   Quarantine orchestration
    restoration  Role restoration
    service      AntiSpamService tying it together
"""

from .classifier import SPAM_RULES, SpamRule, WindowStats, classify, evaluate, summarize
from .gateway import DiscordGuildGateway, GuildGateway
from .ledger import ActivityLedger
from .models import (
    EffectResult,
    InboundEvent,
    MessageEvent,
    QuarantineReport,
    RestoreResult,
    RoleSnapshot,
    UrlInfo,
)
from .quarantine import QuarantineOrchestrator
from .restoration import MemberNotFound, RestorationError, RestorationService, SnapshotNotFound
from .service import AntiSpamService
from .snapshots import RoleSnapshotStore
from .urls import extract_urls, is_suspicious_domain

__all__ = [
    "AntiSpamService",
    "ActivityLedger",
    "RoleSnapshotStore",
    "QuarantineOrchestrator",
    "RestorationService",
    "RestorationError",
    "SnapshotNotFound",
    "MemberNotFound",
    "GuildGateway",
    "DiscordGuildGateway",
    "SPAM_RULES",
    "SpamRule",
    "WindowStats",
    "summarize",
    "evaluate",
    "classify",
    "extract_urls",
    "is_suspicious_domain",
    "UrlInfo",
    "MessageEvent",
    "InboundEvent",
    "RoleSnapshot",
    "EffectResult",
    "QuarantineReport",
    "RestoreResult",
]

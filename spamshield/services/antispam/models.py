"""
Anti-Spam Data Models
=====================

Dataclasses for URLs, ledger entries, inbound events, role snapshots
and the outcome records of quarantine/restoration.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class UrlInfo:
    """One URL found in a message."""
    raw_text: str
    domain: str
    is_suspicious: bool


@dataclass(frozen=True)
class MessageEvent:
    """Ledger entry for one observed message. Never mutated once recorded."""
    timestamp: datetime
    channel_id: int
    message_id: int
    attachment_count: int = 0
    has_mass_mention: bool = False
    urls: Tuple[UrlInfo, ...] = ()

    @property
    def url_count(self) -> int:
        return len(self.urls)

    @property
    def suspicious_url_count(self) -> int:
        return sum(1 for url in self.urls if url.is_suspicious)


@dataclass(frozen=True)
class InboundEvent:
    """
    A non-bot guild message, reduced to what the detector needs.

    The audit fields (display_name, account_created_at, joined_at) only
    feed notifications.
    """
    user_id: int
    guild_id: int
    channel_id: int
    message_id: int
    timestamp: datetime
    content: str = ""
    attachment_count: int = 0
    member_role_ids: Tuple[int, ...] = ()
    display_name: str = ""
    account_created_at: Optional[datetime] = None
    joined_at: Optional[datetime] = None


@dataclass
class RoleSnapshot:
    """Roles a member held right before quarantine."""
    user_id: int
    role_ids: Tuple[int, ...]
    captured_at: datetime
    reason: str
    display_name: str


@dataclass(frozen=True)
class EffectResult:
    """
    Outcome of one outbound platform call.

    `skipped` marks calls that had nothing to do (e.g. the message was
    already gone); those still count as ok.
    """
    ok: bool
    error: Optional[str] = None
    skipped: bool = False

    @classmethod
    def success(cls) -> "EffectResult":
        return cls(ok=True)

    @classmethod
    def skip(cls, reason: str) -> "EffectResult":
        return cls(ok=True, error=reason, skipped=True)

    @classmethod
    def failure(cls, error: str) -> "EffectResult":
        return cls(ok=False, error=error)


@dataclass
class QuarantineReport:
    """What each quarantine step achieved."""
    user_id: int
    rule_key: str
    messages_attempted: int = 0
    messages_deleted: int = 0
    removed_role_ids: List[int] = field(default_factory=list)
    failed_role_ids: List[int] = field(default_factory=list)
    kept_role_ids: List[int] = field(default_factory=list)
    missing_permissions: List[str] = field(default_factory=list)
    suspension_role_applied: bool = False
    timeout_applied: bool = False
    notifications_sent: List[str] = field(default_factory=list)
    notifications_failed: List[str] = field(default_factory=list)


@dataclass
class RestoreResult:
    """Tally of one restoration attempt."""
    restored_count: int
    failed_role_ids: List[int]
    total: int


__all__ = [
    "UrlInfo",
    "MessageEvent",
    "InboundEvent",
    "RoleSnapshot",
    "EffectResult",
    "QuarantineReport",
    "RestoreResult",
]

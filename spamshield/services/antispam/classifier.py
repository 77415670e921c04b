"""
SpamShield - Compromised Account Classifier
===========================================

Turns one user's windowed ledger entries into a spam / not-spam verdict.

DETECTION RULES (evaluated in order, first match wins):
1. @everyone/@here carrying images or links, across 2+ channels
2. 2+ suspicious links across 2+ channels
3. 4+ images across 2+ channels
4. link_threshold+ links across 2+ channels
5. 3+ mass-mention messages across 2+ channels
6. 5+ messages within 10 seconds across 2+ channels
7. Suspicious link plus a mass mention across 3+ channels

Any match means spam; the order only decides which rule gets reported.
The image rule uses a fixed limit, not `image_threshold`.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from spamshield.core.config import AntiSpamConfig
from spamshield.core.logger import logger

from .constants import (
    IMAGE_LIMIT,
    MASS_MENTION_LIMIT,
    MIN_CHANNELS,
    SUSPICIOUS_LINK_LIMIT,
    THREAT_CHANNEL_LIMIT,
    VERY_RECENT_MESSAGE_LIMIT,
    VERY_RECENT_WINDOW_MS,
)
from .models import MessageEvent


# =============================================================================
# Window Aggregates
# =============================================================================

@dataclass(frozen=True)
class WindowStats:
    """Aggregates over one user's windowed events."""
    message_count: int
    channel_count: int
    total_images: int
    total_links: int
    suspicious_links: int
    mass_mention_count: int
    mass_mention_with_images: int
    mass_mention_with_links: int
    very_recent_count: int
    very_recent_channel_count: int

    def as_tree(self) -> List[Tuple[str, str]]:
        return [
            ("Recent Messages", str(self.message_count)),
            ("Unique Channels", str(self.channel_count)),
            ("Total Images", str(self.total_images)),
            ("Total Links", str(self.total_links)),
            ("Suspicious Links", str(self.suspicious_links)),
            ("@everyone Messages", str(self.mass_mention_count)),
            ("@everyone With Images", str(self.mass_mention_with_images)),
            ("@everyone With Links", str(self.mass_mention_with_links)),
            ("Last 10s", f"{self.very_recent_count} msgs / {self.very_recent_channel_count} channels"),
        ]


def summarize(
    events: Sequence[MessageEvent],
    now: datetime,
    very_recent_ms: int = VERY_RECENT_WINDOW_MS,
) -> WindowStats:
    """
    Compute the aggregates every rule reads.

    Args:
        events: One user's windowed events.
        now: Reference time for the tighter 10s window.
        very_recent_ms: Width of the tighter window.
    """
    mass_mentions = [e for e in events if e.has_mass_mention]
    very_recent_cutoff = timedelta(milliseconds=very_recent_ms)
    very_recent = [e for e in events if now - e.timestamp <= very_recent_cutoff]

    return WindowStats(
        message_count=len(events),
        channel_count=len({e.channel_id for e in events}),
        total_images=sum(e.attachment_count for e in events),
        total_links=sum(e.url_count for e in events),
        suspicious_links=sum(e.suspicious_url_count for e in events),
        mass_mention_count=len(mass_mentions),
        mass_mention_with_images=sum(1 for e in mass_mentions if e.attachment_count > 0),
        mass_mention_with_links=sum(1 for e in mass_mentions if e.url_count > 0),
        very_recent_count=len(very_recent),
        very_recent_channel_count=len({e.channel_id for e in very_recent}),
    )


# =============================================================================
# Rule Table
# =============================================================================

@dataclass(frozen=True)
class SpamRule:
    """One detection heuristic."""
    key: str
    description: str
    predicate: Callable[[WindowStats, AntiSpamConfig], bool]

    def matches(self, stats: WindowStats, config: AntiSpamConfig) -> bool:
        return self.predicate(stats, config)


SPAM_RULES: Tuple[SpamRule, ...] = (
    SpamRule(
        key="mass_mention_media",
        description="@everyone with suspicious content across multiple channels",
        predicate=lambda s, c: (
            (s.mass_mention_with_images > 0 or s.mass_mention_with_links > 0)
            and s.channel_count >= MIN_CHANNELS
        ),
    ),
    SpamRule(
        key="suspicious_links",
        description="Suspicious links across multiple channels",
        predicate=lambda s, c: s.suspicious_links >= SUSPICIOUS_LINK_LIMIT and s.channel_count >= MIN_CHANNELS,
    ),
    SpamRule(
        key="image_burst",
        description="Multiple images across multiple channels",
        predicate=lambda s, c: s.total_images >= IMAGE_LIMIT and s.channel_count >= MIN_CHANNELS,
    ),
    SpamRule(
        key="link_burst",
        description="Multiple links across multiple channels",
        predicate=lambda s, c: s.total_links >= c.link_threshold and s.channel_count >= MIN_CHANNELS,
    ),
    SpamRule(
        key="mass_mention_burst",
        description="Mass @everyone across multiple channels",
        predicate=lambda s, c: s.mass_mention_count >= MASS_MENTION_LIMIT and s.channel_count >= MIN_CHANNELS,
    ),
    SpamRule(
        key="rapid_posting",
        description="Rapid posting across multiple channels",
        predicate=lambda s, c: (
            s.very_recent_count >= VERY_RECENT_MESSAGE_LIMIT
            and s.very_recent_channel_count >= MIN_CHANNELS
        ),
    ),
    SpamRule(
        key="suspicious_link_mass_mention",
        description="Suspicious link with @everyone across multiple channels",
        predicate=lambda s, c: (
            s.suspicious_links >= 1
            and s.mass_mention_count >= 1
            and s.channel_count >= THREAT_CHANNEL_LIMIT
        ),
    ),
)


# =============================================================================
# Evaluation
# =============================================================================

def evaluate(
    events: Sequence[MessageEvent],
    config: AntiSpamConfig,
    now: datetime,
    rules: Sequence[SpamRule] = SPAM_RULES,
) -> Optional[SpamRule]:
    """
    Run the rules over a user's windowed events.

    Returns:
        The first matching rule, or None when the window looks clean.
    """
    stats = summarize(events, now)
    logger.debug("Spam Check", stats.as_tree())

    for rule in rules:
        if rule.matches(stats, config):
            logger.debug("Spam Rule Matched", [("Rule", rule.description)])
            return rule

    logger.debug("No spam pattern detected")
    return None


def classify(events: Sequence[MessageEvent], config: AntiSpamConfig, now: datetime) -> bool:
    """True when any rule matches the window."""
    return evaluate(events, config, now) is not None


__all__ = [
    "WindowStats",
    "SpamRule",
    "SPAM_RULES",
    "summarize",
    "evaluate",
    "classify",
]

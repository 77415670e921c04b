"""
SpamShield - Test Fixtures
==========================

Shared fixtures for all tests.
"""

import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set up test environment before importing modules
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="spamshield-test-logs-"))
os.environ.setdefault("DISCORD_TOKEN", "test-token")

from spamshield.core.config import AntiSpamConfig, Config  # noqa: E402
from spamshield.services.antispam.ledger import ActivityLedger  # noqa: E402
from spamshield.services.antispam.models import (  # noqa: E402
    EffectResult,
    InboundEvent,
    MessageEvent,
    UrlInfo,
)
from spamshield.services.antispam.snapshots import RoleSnapshotStore  # noqa: E402


# =============================================================================
# Constants
# =============================================================================

GUILD_ID = 987654321
"""Also the id of the guild's default (@everyone) role."""

USER_ID = 123456789
COMPROMISED_ROLE_ID = 900
PRESERVED_ROLE_ID = 801
HIGH_ROLE_ID = 850
"""A role above the bot's top role."""

LOG_CHANNEL_ID = 7001
ALERT_CHANNEL_ID = 7002
NOTIFICATION_CHANNEL_ID = 7003
DM_FAIL_CHANNEL_ID = 7004

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Fake Guild Gateway
# =============================================================================

class FakeGateway:
    """
    In-memory GuildGateway that records every call.

    Members hold role ids in `member_roles`; add/remove/timeout mutate it
    so restoration can be checked against the pre-quarantine state.
    """

    def __init__(
        self,
        member_roles: Optional[Dict[int, Set[int]]] = None,
        manageable_role_ids: Optional[Set[int]] = None,
        existing_role_ids: Optional[Set[int]] = None,
    ) -> None:
        self.default_role_id = GUILD_ID
        self.member_roles: Dict[int, Set[int]] = member_roles if member_roles is not None else {}
        self.manageable_role_ids = manageable_role_ids if manageable_role_ids is not None else set()
        self.existing_role_ids = (
            existing_role_ids if existing_role_ids is not None
            else set(self.manageable_role_ids) | {HIGH_ROLE_ID}
        )
        self.timeouts: Dict[int, Optional[int]] = {}

        self.missing: List[str] = []
        self.fail_role_ids: Set[int] = set()
        self.already_deleted: Set[int] = set()
        self.failing_channels: Set[int] = set()
        self.dm_fails = False
        self.timeout_fails = False
        self.raise_on_delete = False

        self.calls: List[Tuple] = []
        self.sent: List[Tuple[int, Optional[str], object]] = []
        self.dms: List[Tuple[int, object]] = []

    # Permission checks
    def missing_permissions(self) -> List[str]:
        return list(self.missing)

    def role_exists(self, role_id: int) -> bool:
        return role_id in self.existing_role_ids

    def can_manage_role(self, role_id: int) -> bool:
        return role_id in self.manageable_role_ids

    async def fetch_member_role_ids(self, user_id: int) -> Optional[List[int]]:
        if user_id not in self.member_roles:
            return None
        return sorted(self.member_roles[user_id])

    # Effects
    async def add_role(self, user_id: int, role_id: int, reason: str) -> EffectResult:
        self.calls.append(("add_role", user_id, role_id))
        if role_id in self.fail_role_ids:
            return EffectResult.failure("Missing permissions")
        self.member_roles.setdefault(user_id, set()).add(role_id)
        return EffectResult.success()

    async def remove_role(self, user_id: int, role_id: int, reason: str) -> EffectResult:
        self.calls.append(("remove_role", user_id, role_id))
        if role_id in self.fail_role_ids:
            return EffectResult.failure("Missing permissions")
        self.member_roles.setdefault(user_id, set()).discard(role_id)
        return EffectResult.success()

    async def set_timeout(self, user_id: int, duration_ms: Optional[int], reason: str) -> EffectResult:
        self.calls.append(("set_timeout", user_id, duration_ms))
        if self.timeout_fails:
            return EffectResult.failure("Missing permissions")
        self.timeouts[user_id] = duration_ms
        return EffectResult.success()

    async def delete_message(self, channel_id: int, message_id: int) -> EffectResult:
        self.calls.append(("delete_message", channel_id, message_id))
        if self.raise_on_delete:
            raise RuntimeError("gateway exploded")
        if message_id in self.already_deleted:
            return EffectResult.skip("Message already deleted")
        return EffectResult.success()

    async def send_message(self, channel_id: int, content=None, embed=None) -> EffectResult:
        self.calls.append(("send_message", channel_id))
        if channel_id in self.failing_channels:
            return EffectResult.failure("Channel not found")
        self.sent.append((channel_id, content, embed))
        return EffectResult.success()

    async def send_direct_message(self, user_id: int, content=None, embed=None) -> EffectResult:
        self.calls.append(("send_direct_message", user_id))
        if self.dm_fails:
            return EffectResult.failure("DMs disabled")
        self.dms.append((user_id, embed))
        return EffectResult.success()

    # Helpers
    def calls_named(self, name: str) -> List[Tuple]:
        return [call for call in self.calls if call[0] == name]

    def sent_to(self, channel_id: int) -> list:
        return [entry for entry in self.sent if entry[0] == channel_id]


# =============================================================================
# Config Fixtures
# =============================================================================

@pytest.fixture
def antispam_config():
    """Anti-spam config with every channel and the compromised role set."""
    return AntiSpamConfig(
        compromised_role_id=COMPROMISED_ROLE_ID,
        preserve_role_ids={PRESERVED_ROLE_ID},
        log_channel_id=LOG_CHANNEL_ID,
        alert_channel_id=ALERT_CHANNEL_ID,
        notification_channel_id=NOTIFICATION_CHANNEL_ID,
        dm_fail_log_channel_id=DM_FAIL_CHANNEL_ID,
    )


@pytest.fixture
def bot_config(antispam_config):
    return Config(
        discord_token="test-token",
        command_role_ids={555},
        developer_id=42,
        antispam=antispam_config,
    )


# =============================================================================
# State Fixtures
# =============================================================================

@pytest.fixture
def ledger():
    return ActivityLedger()


@pytest.fixture
def snapshots():
    return RoleSnapshotStore()


@pytest.fixture
def fake_gateway():
    """Gateway where the user holds roles 10, 11, the preserved role and a role above the bot."""
    return FakeGateway(
        member_roles={USER_ID: {10, 11, PRESERVED_ROLE_ID, HIGH_ROLE_ID}},
        manageable_role_ids={10, 11, PRESERVED_ROLE_ID, COMPROMISED_ROLE_ID},
    )


# =============================================================================
# Event Factories
# =============================================================================

@pytest.fixture
def base_time():
    return BASE_TIME


def at(seconds: float) -> datetime:
    """BASE_TIME offset by `seconds`."""
    return BASE_TIME + timedelta(seconds=seconds)


def make_event(
    seconds: float = 0,
    channel_id: int = 1,
    message_id: int = 0,
    attachments: int = 0,
    mass_mention: bool = False,
    links: int = 0,
    suspicious_links: int = 0,
) -> MessageEvent:
    """Build a ledger entry with `links` plain and `suspicious_links` flagged URLs."""
    urls = tuple(
        [UrlInfo(raw_text="https://example.com", domain="example.com", is_suspicious=False)] * links
        + [UrlInfo(raw_text="https://bit.ly/x", domain="bit.ly", is_suspicious=True)] * suspicious_links
    )
    return MessageEvent(
        timestamp=at(seconds),
        channel_id=channel_id,
        message_id=message_id,
        attachment_count=attachments,
        has_mass_mention=mass_mention,
        urls=urls,
    )


def make_inbound(
    seconds: float = 0,
    channel_id: int = 1,
    message_id: int = 0,
    content: str = "",
    attachments: int = 0,
    user_id: int = USER_ID,
    role_ids: Tuple[int, ...] = (10, 11, PRESERVED_ROLE_ID, HIGH_ROLE_ID),
) -> InboundEvent:
    return InboundEvent(
        user_id=user_id,
        guild_id=GUILD_ID,
        channel_id=channel_id,
        message_id=message_id,
        timestamp=at(seconds),
        content=content,
        attachment_count=attachments,
        member_role_ids=role_ids,
        display_name="spammer#0001",
        account_created_at=datetime(2020, 9, 13, 12, 0, 0, tzinfo=timezone.utc),
        joined_at=datetime(2022, 4, 15, 10, 0, 0, tzinfo=timezone.utc),
    )


# =============================================================================
# Mock Discord Objects
# =============================================================================

@pytest.fixture
def mock_operator():
    """Member holding the command role."""
    role = MagicMock()
    role.id = 555
    member = MagicMock()
    member.id = 111222333
    member.mention = "<@111222333>"
    member.roles = [role]
    member.guild_permissions.administrator = False
    return member


@pytest.fixture
def mock_ctx(mock_operator):
    """Command context whose replies are recorded."""
    ctx = MagicMock()
    ctx.author = mock_operator
    ctx.guild = MagicMock()
    ctx.guild.id = GUILD_ID
    ctx.reply = AsyncMock()
    return ctx

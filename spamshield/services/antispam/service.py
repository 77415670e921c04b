"""
SpamShield - Anti-Spam Service
==============================

Main service object for compromised-account detection. Owns the only
mutable state of the system: the activity ledger, the role snapshot
store and the runtime-mutable parts of AntiSpamConfig.

DETECTION PIPELINE (per message):
1. Skip when the system is disabled
2. Extract and classify URLs, record the event in the ledger
3. Stop for exempt users/roles (their events stay recorded)
4. Evaluate the seven rules over the user's time window
5. Quarantine on a match

MEMORY MANAGEMENT:
    A background loop sweeps ledger entries older than
    history_max_age_ms every cleanup_interval_s seconds.
"""

import asyncio
from datetime import datetime
from typing import List, Optional, Tuple, TYPE_CHECKING

import discord

from spamshield.core.config import AntiSpamConfig, get_config
from spamshield.core.constants import LOCAL_TZ
from spamshield.core.logger import logger
from spamshield.utils.async_utils import create_safe_task

from . import embeds
from .classifier import evaluate
from .constants import MASS_MENTION_TOKENS
from .gateway import DiscordGuildGateway, GuildGateway
from .ledger import ActivityLedger
from .models import InboundEvent, MessageEvent, QuarantineReport, RestoreResult, RoleSnapshot
from .quarantine import QuarantineOrchestrator
from .restoration import RestorationService
from .snapshots import RoleSnapshotStore
from .urls import extract_urls

if TYPE_CHECKING:
    from spamshield.bot import SpamShieldBot


def has_mass_mention(content: str) -> bool:
    """True when the text contains @everyone or @here."""
    return any(token in content for token in MASS_MENTION_TOKENS)


def inbound_event_from_message(message: discord.Message) -> Optional[InboundEvent]:
    """Reduce a guild message to an InboundEvent (None outside guilds)."""
    guild = message.guild
    if guild is None:
        return None

    author = message.author
    roles = getattr(author, "roles", [])
    return InboundEvent(
        user_id=author.id,
        guild_id=guild.id,
        channel_id=message.channel.id,
        message_id=message.id,
        timestamp=message.created_at,
        content=message.content or "",
        attachment_count=len(message.attachments),
        member_role_ids=tuple(role.id for role in roles if role.id != guild.id),
        display_name=str(author),
        account_created_at=author.created_at,
        joined_at=getattr(author, "joined_at", None),
    )


class AntiSpamService:
    """
    Compromised-account detection and response.

    Features:
    - Rolling per-user activity ledger with periodic sweep
    - Seven-rule multi-channel spam classifier
    - Quarantine with role snapshot, timeout and notifications
    - One-shot role restoration
    - Runtime toggle and trusted-domain maintenance
    """

    def __init__(
        self,
        bot: Optional["SpamShieldBot"] = None,
        config: Optional[AntiSpamConfig] = None,
    ) -> None:
        self.bot = bot
        self.config = config if config is not None else get_config().antispam

        self.ledger = ActivityLedger()
        self.snapshots = RoleSnapshotStore()
        self.orchestrator = QuarantineOrchestrator(self.config, self.snapshots)
        self.restoration = RestorationService(self.config, self.snapshots)

        self._cleanup_task: Optional[asyncio.Task] = None

    # =========================================================================
    # Background Tasks
    # =========================================================================

    def start(self) -> None:
        """Start the ledger sweep loop (idempotent)."""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = create_safe_task(self._cleanup_loop(), "Anti-Spam Cleanup Loop")

    def stop(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        """Sweep old ledger entries every cleanup_interval_s seconds."""
        while True:
            await asyncio.sleep(self.config.cleanup_interval_s)
            try:
                self.sweep()
            except Exception as e:
                logger.warning("Anti-Spam Cleanup Error", [
                    ("Error", str(e)[:50]),
                ])

    def sweep(self, now: Optional[datetime] = None) -> int:
        """Drop ledger entries past the retention horizon; returns users removed."""
        now = now or datetime.now(LOCAL_TZ)
        removed = self.ledger.sweep(now, self.config.history_max_age_ms)
        logger.tree("Message History Cleaned", [
            ("Users Removed", str(removed)),
            ("Tracking", f"{len(self.ledger)} users"),
        ], emoji="🧹")
        return removed

    # =========================================================================
    # Detection
    # =========================================================================

    def is_exempt(self, event: InboundEvent) -> bool:
        if event.user_id in self.config.exempt_user_ids:
            return True
        return any(role_id in self.config.exempt_role_ids for role_id in event.member_role_ids)

    def build_message_event(self, event: InboundEvent) -> MessageEvent:
        return MessageEvent(
            timestamp=event.timestamp,
            channel_id=event.channel_id,
            message_id=event.message_id,
            attachment_count=event.attachment_count,
            has_mass_mention=has_mass_mention(event.content),
            urls=tuple(extract_urls(event.content, self.config.trusted_domains)),
        )

    async def process_event(self, event: InboundEvent, gateway: GuildGateway) -> Optional[QuarantineReport]:
        """
        Run one inbound event through the detection pipeline.

        The event's own timestamp is the reference time for windowing.

        Returns:
            The quarantine report when the user was quarantined, else None.
        """
        if not self.config.enabled:
            return None

        self.ledger.record(event.user_id, self.build_message_event(event))

        if self.is_exempt(event):
            return None

        now = event.timestamp
        window = self.ledger.window(event.user_id, now, self.config.time_window_ms)
        rule = evaluate(window, self.config, now)
        if rule is None:
            return None

        return await self.orchestrator.quarantine(event, rule, window, gateway, now)

    async def check_message(self, message: discord.Message) -> Optional[QuarantineReport]:
        """
        Check a guild message; never raises.

        Args:
            message: Message from a non-bot guild member.
        """
        try:
            event = inbound_event_from_message(message)
            if event is None:
                return None
            gateway = DiscordGuildGateway(self.bot, message.guild)
            return await self.process_event(event, gateway)
        except Exception as e:
            logger.error("Anti-Spam Check Failed", [
                ("User ID", str(getattr(message.author, "id", "Unknown"))),
                ("Channel ID", str(getattr(message.channel, "id", "Unknown"))),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:200]),
            ])
            return None

    # =========================================================================
    # Operator Operations
    # =========================================================================

    def toggle(self) -> bool:
        """Flip the master switch; returns the new state."""
        self.config.enabled = not self.config.enabled
        logger.tree("Anti-Spam Toggled", [
            ("Status", "ENABLED" if self.config.enabled else "DISABLED"),
        ], emoji="🔧")
        return self.config.enabled

    @property
    def trusted_domains(self) -> List[str]:
        return list(self.config.trusted_domains)

    def add_trusted_domain(self, domain: str) -> bool:
        """Add a domain (lowercased); False when already trusted."""
        domain = domain.strip().lower()
        if not domain or domain in self.config.trusted_domains:
            return False
        self.config.trusted_domains.append(domain)
        logger.tree("Trusted Domain Added", [
            ("Domain", domain),
            ("Total", str(len(self.config.trusted_domains))),
        ], emoji="🌐")
        return True

    def remove_trusted_domain(self, domain: str) -> bool:
        """Remove a domain; False when it was not trusted."""
        domain = domain.strip().lower()
        if domain not in self.config.trusted_domains:
            return False
        self.config.trusted_domains.remove(domain)
        logger.tree("Trusted Domain Removed", [
            ("Domain", domain),
            ("Remaining", str(len(self.config.trusted_domains))),
        ], emoji="🌐")
        return True

    async def restore(self, user_id: int, gateway: GuildGateway, actor) -> RestoreResult:
        """
        Restore a user's roles and post the restoration to the log channel.

        Raises:
            SnapshotNotFound, MemberNotFound: see RestorationService.restore.
        """
        result = await self.restoration.restore(user_id, gateway, actor_name=str(actor))

        if self.config.log_channel_id:
            log_result = await gateway.send_message(
                self.config.log_channel_id,
                embed=embeds.build_restore_log_embed(user_id, result, actor),
            )
            if not log_result.ok:
                logger.warning("Restoration Log Failed", [("Error", log_result.error or "Unknown")])

        return result

    def debug_data(self, user_id: int) -> Tuple[List[MessageEvent], Optional[RoleSnapshot]]:
        return self.ledger.history(user_id), self.snapshots.get(user_id)

    @property
    def tracked_users(self) -> int:
        return len(self.ledger)

    @property
    def stored_snapshots(self) -> int:
        return len(self.snapshots)


__all__ = [
    "AntiSpamService",
    "has_mass_mention",
    "inbound_event_from_message",
]

"""
SpamShield - Guild Gateway
==========================

Narrow capability interfaces the quarantine and restoration code depend
on, plus the discord.py implementation.

DESIGN:
    Orchestration code never touches discord.py objects directly. It calls
    a GuildGateway, and every effect comes back as an EffectResult instead
    of an exception:

    - discord.NotFound while deleting a message -> skipped (counts as ok)
    - discord.Forbidden / discord.HTTPException -> failure, logged here
      with status details

    Tests drive the orchestrator through an in-memory gateway with the
    same surface.
"""

from datetime import timedelta
from typing import List, Optional, Protocol

import discord

from spamshield.core.logger import logger
from spamshield.utils.discord_errors import describe_http_error, log_http_error

from .constants import REQUIRED_PERMISSIONS
from .models import EffectResult


# =============================================================================
# Capability Interfaces
# =============================================================================

class RoleCapable(Protocol):
    async def add_role(self, user_id: int, role_id: int, reason: str) -> EffectResult: ...

    async def remove_role(self, user_id: int, role_id: int, reason: str) -> EffectResult: ...


class Timeoutable(Protocol):
    async def set_timeout(self, user_id: int, duration_ms: Optional[int], reason: str) -> EffectResult:
        """Apply a timeout, or clear it when duration_ms is None."""
        ...


class Messageable(Protocol):
    async def delete_message(self, channel_id: int, message_id: int) -> EffectResult: ...

    async def send_message(
        self,
        channel_id: int,
        content: Optional[str] = None,
        embed: Optional[discord.Embed] = None,
    ) -> EffectResult: ...

    async def send_direct_message(
        self,
        user_id: int,
        content: Optional[str] = None,
        embed: Optional[discord.Embed] = None,
    ) -> EffectResult: ...


class GuildGateway(RoleCapable, Timeoutable, Messageable, Protocol):
    """Everything quarantine and restoration need from one guild."""

    @property
    def default_role_id(self) -> int: ...

    def missing_permissions(self) -> List[str]:
        """Required bot permissions the bot does not hold."""
        ...

    def role_exists(self, role_id: int) -> bool: ...

    def can_manage_role(self, role_id: int) -> bool:
        """True when the role exists and sits below the bot's top role."""
        ...

    async def fetch_member_role_ids(self, user_id: int) -> Optional[List[int]]:
        """The member's non-default role ids, or None if they are not in the guild."""
        ...


# =============================================================================
# discord.py Implementation
# =============================================================================

class DiscordGuildGateway:
    """GuildGateway over a discord.py client and one guild."""

    def __init__(self, bot: discord.Client, guild: discord.Guild) -> None:
        self.bot = bot
        self.guild = guild

    @property
    def default_role_id(self) -> int:
        return self.guild.default_role.id

    # =========================================================================
    # Permission Checks
    # =========================================================================

    def missing_permissions(self) -> List[str]:
        me = self.guild.me
        if me is None:
            return list(REQUIRED_PERMISSIONS)
        perms = me.guild_permissions
        return [name for name in REQUIRED_PERMISSIONS if not getattr(perms, name, False)]

    def role_exists(self, role_id: int) -> bool:
        return self.guild.get_role(role_id) is not None

    def can_manage_role(self, role_id: int) -> bool:
        role = self.guild.get_role(role_id)
        me = self.guild.me
        if role is None or me is None:
            return False
        if role.is_default() or role.managed:
            return False
        return role.position < me.top_role.position

    # =========================================================================
    # Members
    # =========================================================================

    async def _get_member(self, user_id: int) -> Optional[discord.Member]:
        member = self.guild.get_member(user_id)
        if member is not None:
            return member
        try:
            return await self.guild.fetch_member(user_id)
        except discord.NotFound:
            return None

    async def fetch_member_role_ids(self, user_id: int) -> Optional[List[int]]:
        try:
            member = await self._get_member(user_id)
        except discord.HTTPException as e:
            log_http_error(e, "Fetch Member", [("User ID", str(user_id))])
            return None
        if member is None:
            return None
        return [role.id for role in member.roles if not role.is_default()]

    async def _member_effect(self, operation: str, user_id: int, action) -> EffectResult:
        """Resolve the member and run `action(member)` with errors mapped to results."""
        context = [("User ID", str(user_id))]
        try:
            member = await self._get_member(user_id)
            if member is None:
                return EffectResult.failure("Member not in guild")
            await action(member)
        except discord.Forbidden as e:
            log_http_error(e, operation, context)
            return EffectResult.failure("Missing permissions")
        except discord.HTTPException as e:
            log_http_error(e, operation, context)
            return EffectResult.failure(describe_http_error(e))
        return EffectResult.success()

    # =========================================================================
    # Role / Timeout Effects
    # =========================================================================

    async def add_role(self, user_id: int, role_id: int, reason: str) -> EffectResult:
        return await self._member_effect(
            "Add Role", user_id,
            lambda member: member.add_roles(discord.Object(id=role_id), reason=reason),
        )

    async def remove_role(self, user_id: int, role_id: int, reason: str) -> EffectResult:
        return await self._member_effect(
            "Remove Role", user_id,
            lambda member: member.remove_roles(discord.Object(id=role_id), reason=reason),
        )

    async def set_timeout(self, user_id: int, duration_ms: Optional[int], reason: str) -> EffectResult:
        until = timedelta(milliseconds=duration_ms) if duration_ms else None
        return await self._member_effect(
            "Timeout" if until else "Clear Timeout", user_id,
            lambda member: member.timeout(until, reason=reason),
        )

    # =========================================================================
    # Message Effects
    # =========================================================================

    async def delete_message(self, channel_id: int, message_id: int) -> EffectResult:
        channel = self.guild.get_channel_or_thread(channel_id)
        if channel is None or not hasattr(channel, "get_partial_message"):
            return EffectResult.skip("Channel not found")

        try:
            await channel.get_partial_message(message_id).delete()
        except discord.NotFound:
            return EffectResult.skip("Message already deleted")
        except discord.HTTPException as e:
            log_http_error(e, "Delete Message", [
                ("Channel ID", str(channel_id)),
                ("Message ID", str(message_id)),
            ])
            return EffectResult.failure(describe_http_error(e))
        return EffectResult.success()

    async def send_message(
        self,
        channel_id: int,
        content: Optional[str] = None,
        embed: Optional[discord.Embed] = None,
    ) -> EffectResult:
        channel = self.bot.get_channel(channel_id)
        if channel is None or not hasattr(channel, "send"):
            logger.warning("Notification Channel Not Found", [("Channel ID", str(channel_id))])
            return EffectResult.failure("Channel not found")

        try:
            await channel.send(content=content, embed=embed)
        except discord.HTTPException as e:
            log_http_error(e, "Send Message", [("Channel ID", str(channel_id))])
            return EffectResult.failure(describe_http_error(e))
        return EffectResult.success()

    async def send_direct_message(
        self,
        user_id: int,
        content: Optional[str] = None,
        embed: Optional[discord.Embed] = None,
    ) -> EffectResult:
        try:
            user = self.bot.get_user(user_id) or await self.bot.fetch_user(user_id)
            await user.send(content=content, embed=embed)
        except discord.Forbidden:
            # DMs closed; the caller reports this to the DM-failure channel
            return EffectResult.failure("DMs disabled")
        except discord.HTTPException as e:
            log_http_error(e, "Send DM", [("User ID", str(user_id))])
            return EffectResult.failure(describe_http_error(e))
        return EffectResult.success()


__all__ = [
    "RoleCapable",
    "Timeoutable",
    "Messageable",
    "GuildGateway",
    "DiscordGuildGateway",
]

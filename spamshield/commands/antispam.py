"""
SpamShield - Anti-Spam Commands Cog
===================================

`!antispam <subcommand>` operator commands.

DESIGN:
    One prefix command with a case-insensitive subcommand word:
    - status                    System status and live counts
    - restore <user_id>         Restore a quarantined user's roles
    - toggle                    Enable/disable detection
    - debug <user_id>           Ledger and snapshot dump for one user
    - domains add <domain>      Trust a domain
    - domains remove <domain>   Stop trusting a domain
    - domains list              Show trusted domains
    Anything else replies with the help embed.

    Allowed for the developer, administrators and COMMAND_ROLE_IDS holders.
"""

import re
from typing import Callable, Optional, Sequence, TYPE_CHECKING

import discord
from discord.ext import commands

from spamshield.core.config import has_command_permission
from spamshield.core.logger import logger
from spamshield.services.antispam import embeds
from spamshield.services.antispam.gateway import DiscordGuildGateway, GuildGateway
from spamshield.services.antispam.restoration import MemberNotFound, SnapshotNotFound

if TYPE_CHECKING:
    from spamshield.bot import SpamShieldBot


USER_ID_PATTERN = re.compile(r"^<@!?(\d+)>$|^(\d+)$")


def parse_user_id(text: Optional[str]) -> Optional[int]:
    """Accept a raw snowflake or a user mention."""
    if not text:
        return None
    match = USER_ID_PATTERN.match(text.strip())
    if not match:
        return None
    return int(match.group(1) or match.group(2))


# =============================================================================
# Anti-Spam Cog
# =============================================================================

class AntiSpamCog(commands.Cog):
    """
    Operator commands for the anti-spam system.

    Attributes:
        bot: Reference to the main bot instance.
        config: Bot configuration.
        gateway_factory: Builds the GuildGateway used for restore/log effects.
    """

    def __init__(self, bot: "SpamShieldBot") -> None:
        self.bot = bot
        self.config = bot.config
        self.gateway_factory: Callable[[discord.Guild], GuildGateway] = (
            lambda guild: DiscordGuildGateway(bot, guild)
        )

    @property
    def service(self):
        return self.bot.antispam_service

    @property
    def prefix(self) -> str:
        return self.config.command_prefix

    # =========================================================================
    # Entry Point
    # =========================================================================

    @commands.command(name="antispam")
    @commands.guild_only()
    async def antispam(self, ctx: commands.Context, *args: str) -> None:
        """Anti-spam management."""
        await self.handle(ctx, args)

    async def handle(self, ctx: commands.Context, args: Sequence[str]) -> None:
        """Permission check and subcommand dispatch."""
        if not has_command_permission(ctx.author, self.config):
            logger.tree("Anti-Spam Command Denied", [
                ("User", f"{ctx.author} ({ctx.author.id})"),
                ("Args", " ".join(args) or "(none)"),
            ], emoji="🚫")
            await ctx.reply("❌ You don't have permission to use anti-spam commands.")
            return

        if self.service is None:
            await ctx.reply("❌ Anti-spam system is not ready yet.")
            return

        subcommand = args[0].lower() if args else ""
        rest = list(args[1:])

        logger.tree("Anti-Spam Command", [
            ("User", f"{ctx.author} ({ctx.author.id})"),
            ("Subcommand", subcommand or "(help)"),
        ], emoji="🛡️")

        if subcommand == "status":
            await self._status(ctx)
        elif subcommand == "restore":
            await self._restore(ctx, rest[0] if rest else None)
        elif subcommand == "toggle":
            await self._toggle(ctx)
        elif subcommand == "debug":
            await self._debug(ctx, rest[0] if rest else None)
        elif subcommand == "domains":
            await self._domains(ctx, rest)
        else:
            await ctx.reply(embed=embeds.build_help_embed(self.prefix))

    # =========================================================================
    # Subcommands
    # =========================================================================

    async def _status(self, ctx: commands.Context) -> None:
        service = self.service
        await ctx.reply(embed=embeds.build_status_embed(
            service.config, service.tracked_users, service.stored_snapshots,
        ))

    async def _restore(self, ctx: commands.Context, raw_user_id: Optional[str]) -> None:
        user_id = parse_user_id(raw_user_id)
        if user_id is None:
            await ctx.reply(f"❌ Please provide a user ID: `{self.prefix}antispam restore <user_id>`")
            return

        gateway = self.gateway_factory(ctx.guild)
        try:
            result = await self.service.restore(user_id, gateway, ctx.author)
        except SnapshotNotFound:
            await ctx.reply("❌ No stored role data found for this user.")
            return
        except MemberNotFound:
            await ctx.reply(
                f"❌ Error restoring roles for <@{user_id}>. "
                "User may have left the server or roles may not exist."
            )
            return

        await ctx.reply(embed=embeds.build_restore_reply(user_id, result, ctx.author))

    async def _toggle(self, ctx: commands.Context) -> None:
        enabled = self.service.toggle()
        await ctx.reply(embed=embeds.build_toggle_embed(enabled, ctx.author))

        log_channel_id = self.service.config.log_channel_id
        if log_channel_id:
            gateway = self.gateway_factory(ctx.guild)
            result = await gateway.send_message(
                log_channel_id, embed=embeds.build_toggle_log_embed(enabled, ctx.author),
            )
            if not result.ok:
                logger.warning("Toggle Log Failed", [("Error", result.error or "Unknown")])

    async def _debug(self, ctx: commands.Context, raw_user_id: Optional[str]) -> None:
        user_id = parse_user_id(raw_user_id)
        if user_id is None:
            await ctx.reply(f"❌ Please provide a user ID: `{self.prefix}antispam debug <user_id>`")
            return

        history, snapshot = self.service.debug_data(user_id)
        if not history and snapshot is None:
            await ctx.reply("❌ No data found for this user.")
            return

        await ctx.reply(embed=embeds.build_debug_embed(user_id, history, snapshot))

    async def _domains(self, ctx: commands.Context, args: Sequence[str]) -> None:
        action = args[0].lower() if args else "list"
        domain = args[1].strip().lower() if len(args) > 1 else ""

        if action == "list":
            domains = self.service.trusted_domains
            if not domains:
                await ctx.reply("❌ No trusted domains configured.")
                return
            await ctx.reply(embed=embeds.build_domain_list_embed(domains))
            return

        if action not in ("add", "remove") or not domain:
            await ctx.reply(
                f"❌ Usage: `{self.prefix}antispam domains add <domain>`, "
                f"`{self.prefix}antispam domains remove <domain>` or `{self.prefix}antispam domains list`"
            )
            return

        if action == "add":
            if not self.service.add_trusted_domain(domain):
                await ctx.reply(f"❌ Domain `{domain}` is already in the trusted list.")
                return
            await ctx.reply(embed=embeds.build_domain_added_embed(
                domain, ctx.author, len(self.service.trusted_domains),
            ))
            return

        if not self.service.remove_trusted_domain(domain):
            await ctx.reply(f"❌ Domain `{domain}` is not in the trusted list.")
            return
        await ctx.reply(embed=embeds.build_domain_removed_embed(
            domain, ctx.author, len(self.service.trusted_domains),
        ))


async def setup(bot: "SpamShieldBot") -> None:
    """Add the anti-spam commands cog to the bot."""
    await bot.add_cog(AntiSpamCog(bot))
    logger.debug("Anti-Spam Commands Loaded")

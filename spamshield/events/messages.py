"""
SpamShield - Message Events
===========================

Feeds every non-bot guild message into the anti-spam service.
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from spamshield.core.logger import logger

if TYPE_CHECKING:
    from spamshield.bot import SpamShieldBot


class MessageEvents(commands.Cog):
    """Message event handlers."""

    def __init__(self, bot: "SpamShieldBot") -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        """
        Route guild messages to the anti-spam check.

        Bots, webhooks and DMs are ignored. Operator commands are checked
        like any other message.
        """
        if message.author.bot or message.webhook_id is not None:
            return

        if message.guild is None:
            return

        if self.bot.antispam_service:
            await self.bot.antispam_service.check_message(message)


async def setup(bot: "SpamShieldBot") -> None:
    """Add the message events cog to the bot."""
    await bot.add_cog(MessageEvents(bot))
    logger.debug("Message Events Loaded")

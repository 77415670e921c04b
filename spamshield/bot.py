"""
SpamShield - Main Bot Class
===========================

Discord client hosting the anti-spam service.

Features:
- Compromised-account detection on every guild message
- `!antispam` operator commands
- Periodic activity-ledger cleanup
"""

from datetime import datetime
from typing import Optional

import discord
from discord.ext import commands

from spamshield.core.config import get_config
from spamshield.core.constants import LOCAL_TZ
from spamshield.core.logger import logger
from spamshield.services.antispam import AntiSpamService


# =============================================================================
# SpamShieldBot Class
# =============================================================================

class SpamShieldBot(commands.Bot):
    """
    Main Discord bot class.

    SERVICE INITIALIZATION ORDER:
    1. __init__:
       - AntiSpamService (empty ledger and snapshot store)

    2. setup_hook (before on_ready):
       - Command cog loading
       - Event cog loading

    3. on_ready:
       - Anti-spam cleanup loop
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self) -> None:
        """Initialize the bot with the intents the detector needs."""
        self.config = get_config()

        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True

        super().__init__(
            command_prefix=self.config.command_prefix,
            intents=intents,
            help_command=None,
        )

        self.start_time: datetime = datetime.now(LOCAL_TZ)
        self.antispam_service: Optional[AntiSpamService] = AntiSpamService(self, self.config.antispam)

        # Ready state guard
        self._ready_initialized: bool = False

        logger.info("Bot Instance Created")

    # =========================================================================
    # Setup Hook
    # =========================================================================

    async def setup_hook(self) -> None:
        """Load cogs before on_ready."""
        from spamshield.commands import COMMAND_COGS
        for cog in COMMAND_COGS:
            try:
                await self.load_extension(cog)
                logger.success(f"Cog Loaded: {cog.split('.')[-1]}")
            except Exception as e:
                logger.error("Failed to Load Cog", [("Cog", cog), ("Error", str(e))])

        from spamshield.events import EVENT_COGS
        for cog in EVENT_COGS:
            try:
                await self.load_extension(cog)
                logger.debug(f"Event Cog Loaded: {cog.split('.')[-1]}")
            except Exception as e:
                logger.error("Failed to Load Event Cog", [("Cog", cog), ("Error", str(e))])

    # =========================================================================
    # On Ready
    # =========================================================================

    async def on_ready(self) -> None:
        """Start background services once connected."""
        if self._ready_initialized:
            logger.info("Bot Reconnected (skipping re-initialization)")
            return

        self._ready_initialized = True

        if not self.user:
            return

        logger.tree("BOT ONLINE", [
            ("Name", self.user.name),
            ("ID", str(self.user.id)),
            ("Guilds", str(len(self.guilds))),
        ], emoji="🚀")

        if self.antispam_service:
            self.antispam_service.start()

        antispam = self.config.antispam
        logger.tree("SPAMSHIELD READY", [
            ("Anti-Spam", "Enabled" if antispam.enabled else "Disabled"),
            ("Time Window", f"{antispam.time_window_ms}ms"),
            ("Cleanup Every", f"{antispam.cleanup_interval_s}s"),
            ("Compromised Role", str(antispam.compromised_role_id or "Not set")),
        ], emoji="🛡️")

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def close(self) -> None:
        """Stop background tasks, then disconnect."""
        logger.info("Initiating Graceful Shutdown")

        if self.antispam_service:
            self.antispam_service.stop()

        await super().close()

        logger.tree("SHUTDOWN COMPLETE", [
            ("Uptime", str(datetime.now(LOCAL_TZ) - self.start_time)),
        ], emoji="🛑")


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["SpamShieldBot"]

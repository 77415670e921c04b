"""
Tests for spamshield/commands/antispam.py

Runs the `!antispam` dispatcher against a real AntiSpamService and a
FakeGateway, checking the replies an operator would see.
"""

from unittest.mock import MagicMock

import pytest

from spamshield.commands.antispam import AntiSpamCog, parse_user_id
from spamshield.services.antispam.models import RoleSnapshot
from spamshield.services.antispam.service import AntiSpamService

from conftest import (
    BASE_TIME,
    COMPROMISED_ROLE_ID,
    HIGH_ROLE_ID,
    LOG_CHANNEL_ID,
    PRESERVED_ROLE_ID,
    USER_ID,
    FakeGateway,
    make_inbound,
)


@pytest.fixture
def gateway():
    return FakeGateway(
        member_roles={USER_ID: {PRESERVED_ROLE_ID, HIGH_ROLE_ID, COMPROMISED_ROLE_ID}},
        manageable_role_ids={10, 11, PRESERVED_ROLE_ID, COMPROMISED_ROLE_ID},
    )


@pytest.fixture
def cog(bot_config, gateway):
    bot = MagicMock()
    bot.config = bot_config
    bot.antispam_service = AntiSpamService(bot=bot, config=bot_config.antispam)
    cog = AntiSpamCog(bot)
    cog.gateway_factory = lambda guild: gateway
    return cog


def _store_snapshot(cog):
    cog.service.snapshots.save(RoleSnapshot(
        user_id=USER_ID,
        role_ids=(10, 11, PRESERVED_ROLE_ID, HIGH_ROLE_ID),
        captured_at=BASE_TIME,
        reason="Anti-spam detection",
        display_name="spammer#0001",
    ))


def _reply_text(ctx):
    args, _ = ctx.reply.call_args
    return args[0]


def _reply_embed(ctx):
    _, kwargs = ctx.reply.call_args
    return kwargs["embed"]


# =============================================================================
# parse_user_id() Tests
# =============================================================================

class TestParseUserId:
    """Tests for parse_user_id function."""

    def test_raw_id(self):
        assert parse_user_id("123456789") == 123456789

    def test_mentions(self):
        assert parse_user_id("<@123456789>") == 123456789
        assert parse_user_id("<@!123456789>") == 123456789

    def test_invalid(self):
        assert parse_user_id(None) is None
        assert parse_user_id("") is None
        assert parse_user_id("someone") is None
        assert parse_user_id("<#123>") is None


# =============================================================================
# Access & Dispatch
# =============================================================================

class TestDispatch:
    """Tests for permission checks and subcommand routing."""

    @pytest.mark.asyncio
    async def test_denied_without_role(self, cog, mock_ctx):
        mock_ctx.author.roles = []

        await cog.handle(mock_ctx, ["status"])

        assert _reply_text(mock_ctx) == "❌ You don't have permission to use anti-spam commands."

    @pytest.mark.asyncio
    async def test_administrator_allowed(self, cog, mock_ctx):
        mock_ctx.author.roles = []
        mock_ctx.author.guild_permissions.administrator = True

        await cog.handle(mock_ctx, ["status"])

        assert _reply_embed(mock_ctx).title == "🛡️ Anti-Spam System Status"

    @pytest.mark.asyncio
    async def test_no_args_shows_help(self, cog, mock_ctx):
        await cog.handle(mock_ctx, [])
        assert _reply_embed(mock_ctx).title == "🛡️ Anti-Spam Commands"

    @pytest.mark.asyncio
    async def test_help_lists_who_has_access(self, cog, mock_ctx):
        await cog.handle(mock_ctx, [])

        fields = {f.name: f.value for f in _reply_embed(mock_ctx).fields}
        assert "administrators" in fields["🔐 Access"]
        assert "bot developer" in fields["🔐 Access"]

    @pytest.mark.asyncio
    async def test_unknown_subcommand_shows_help(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["explode"])
        assert _reply_embed(mock_ctx).title == "🛡️ Anti-Spam Commands"

    @pytest.mark.asyncio
    async def test_subcommand_case_insensitive(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["STATUS"])
        assert _reply_embed(mock_ctx).title == "🛡️ Anti-Spam System Status"

    @pytest.mark.asyncio
    async def test_service_not_ready(self, cog, mock_ctx):
        cog.bot.antispam_service = None

        await cog.handle(mock_ctx, ["status"])

        assert "not ready" in _reply_text(mock_ctx)


# =============================================================================
# status
# =============================================================================

class TestStatus:
    """Tests for `!antispam status`."""

    @pytest.mark.asyncio
    async def test_live_counts(self, cog, mock_ctx, gateway):
        await cog.service.process_event(make_inbound(content="hello"), gateway)
        _store_snapshot(cog)

        await cog.handle(mock_ctx, ["status"])

        fields = {field.name: field.value for field in _reply_embed(mock_ctx).fields}
        assert fields["Status"] == "✅ Enabled"
        assert fields["Active Histories"] == "1 users"
        assert fields["Stored Roles"] == "1 users"
        assert fields["Time Window"] == "30s"


# =============================================================================
# restore
# =============================================================================

class TestRestore:
    """Tests for `!antispam restore`."""

    @pytest.mark.asyncio
    async def test_missing_user_id(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["restore"])
        assert _reply_text(mock_ctx) == "❌ Please provide a user ID: `!antispam restore <user_id>`"

    @pytest.mark.asyncio
    async def test_no_snapshot(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["restore", str(USER_ID)])
        assert _reply_text(mock_ctx) == "❌ No stored role data found for this user."

    @pytest.mark.asyncio
    async def test_member_left(self, cog, mock_ctx, gateway):
        _store_snapshot(cog)
        del gateway.member_roles[USER_ID]

        await cog.handle(mock_ctx, ["restore", str(USER_ID)])

        assert "Error restoring roles" in _reply_text(mock_ctx)
        assert cog.service.stored_snapshots == 1

    @pytest.mark.asyncio
    async def test_success(self, cog, mock_ctx, gateway):
        _store_snapshot(cog)

        await cog.handle(mock_ctx, ["restore", f"<@{USER_ID}>"])

        embed = _reply_embed(mock_ctx)
        assert embed.title == "✅ Roles Restored"
        assert gateway.member_roles[USER_ID] == {10, 11, PRESERVED_ROLE_ID, HIGH_ROLE_ID}
        assert gateway.sent_to(LOG_CHANNEL_ID)[-1][2].title == "🔄 Role Restoration"

    @pytest.mark.asyncio
    async def test_success_with_failed_roles(self, cog, mock_ctx, gateway):
        _store_snapshot(cog)
        gateway.fail_role_ids = {HIGH_ROLE_ID}

        await cog.handle(mock_ctx, ["restore", str(USER_ID)])

        fields = {field.name: field.value for field in _reply_embed(mock_ctx).fields}
        assert fields["⚠️ Failed Roles"] == f"<@&{HIGH_ROLE_ID}>"


# =============================================================================
# toggle
# =============================================================================

class TestToggle:
    """Tests for `!antispam toggle`."""

    @pytest.mark.asyncio
    async def test_disables_and_logs(self, cog, mock_ctx, gateway):
        await cog.handle(mock_ctx, ["toggle"])

        assert cog.service.config.enabled is False
        assert "DISABLED" in _reply_embed(mock_ctx).description
        log_embed = gateway.sent_to(LOG_CHANNEL_ID)[0][2]
        assert log_embed.title == "🔧 Anti-Spam System Toggle"

    @pytest.mark.asyncio
    async def test_twice_re_enables(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["toggle"])
        await cog.handle(mock_ctx, ["toggle"])

        assert cog.service.config.enabled is True
        assert "ENABLED" in _reply_embed(mock_ctx).description


# =============================================================================
# debug
# =============================================================================

class TestDebug:
    """Tests for `!antispam debug`."""

    @pytest.mark.asyncio
    async def test_no_data(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["debug", "1"])
        assert _reply_text(mock_ctx) == "❌ No data found for this user."

    @pytest.mark.asyncio
    async def test_missing_user_id(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["debug"])
        assert "Please provide a user ID" in _reply_text(mock_ctx)

    @pytest.mark.asyncio
    async def test_with_history(self, cog, mock_ctx, gateway):
        await cog.service.process_event(make_inbound(content="hello", attachments=1), gateway)

        await cog.handle(mock_ctx, ["debug", str(USER_ID)])

        embed = _reply_embed(mock_ctx)
        fields = {field.name: field.value for field in embed.fields}
        assert embed.title == "🐛 User Debug Information"
        assert fields["Message History"] == "1 messages"
        assert fields["Stored Roles"] == "None"

    @pytest.mark.asyncio
    async def test_snapshot_only(self, cog, mock_ctx):
        _store_snapshot(cog)

        await cog.handle(mock_ctx, ["debug", str(USER_ID)])

        fields = {field.name: field.value for field in _reply_embed(mock_ctx).fields}
        assert fields["Stored Roles"] == "4 roles"


# =============================================================================
# domains
# =============================================================================

class TestDomains:
    """Tests for `!antispam domains`."""

    @pytest.mark.asyncio
    async def test_list_empty(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["domains"])
        assert _reply_text(mock_ctx) == "❌ No trusted domains configured."

    @pytest.mark.asyncio
    async def test_add_then_list(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["domains", "add", "YouTube.com"])
        assert _reply_embed(mock_ctx).title == "✅ Trusted Domain Added"

        await cog.handle(mock_ctx, ["domains", "list"])
        assert "`youtube.com`" in _reply_embed(mock_ctx).description

    @pytest.mark.asyncio
    async def test_add_duplicate(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["domains", "add", "youtube.com"])
        await cog.handle(mock_ctx, ["domains", "add", "youtube.com"])
        assert _reply_text(mock_ctx) == "❌ Domain `youtube.com` is already in the trusted list."

    @pytest.mark.asyncio
    async def test_remove(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["domains", "add", "youtube.com"])
        await cog.handle(mock_ctx, ["domains", "remove", "youtube.com"])

        assert _reply_embed(mock_ctx).title == "✅ Trusted Domain Removed"
        assert cog.service.trusted_domains == []

    @pytest.mark.asyncio
    async def test_remove_unknown(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["domains", "remove", "youtube.com"])
        assert _reply_text(mock_ctx) == "❌ Domain `youtube.com` is not in the trusted list."

    @pytest.mark.asyncio
    async def test_usage_on_bad_action(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["domains", "purge", "x.com"])
        assert _reply_text(mock_ctx).startswith("❌ Usage:")

    @pytest.mark.asyncio
    async def test_usage_on_missing_domain(self, cog, mock_ctx):
        await cog.handle(mock_ctx, ["domains", "add"])
        assert _reply_text(mock_ctx).startswith("❌ Usage:")

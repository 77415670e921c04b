"""
SpamShield - Anti-Spam Embeds
=============================

Builders for every message the anti-spam system posts: the quarantine
notifications (user channel, DM, audit log, server alert) and the
replies/log entries of the `!antispam` operator commands.

All builders are pure; sending is the caller's job.
"""

from datetime import datetime
from typing import Optional, Sequence

import discord

from spamshield.core.config import AntiSpamConfig
from spamshield.core.constants import FOOTER_TEXT, LOCAL_TZ, MS_PER_SECOND, EmbedColors
from spamshield.utils.duration import format_duration_long, format_duration_ms

from .classifier import SpamRule, WindowStats
from .constants import DEBUG_RECENT_ENTRIES, DETECTION_TYPES, MAX_LOGGED_ROLES
from .models import InboundEvent, MessageEvent, QuarantineReport, RestoreResult, RoleSnapshot


def _now() -> datetime:
    return datetime.now(LOCAL_TZ)


def _timeout_text(timeout_ms: int) -> str:
    return format_duration_long(timeout_ms // MS_PER_SECOND)


def _relative(dt: Optional[datetime]) -> str:
    return discord.utils.format_dt(dt, "R") if dt else "Unknown"


def _user_line(user_id: int, display_name: str = "") -> str:
    if display_name:
        return f"**{display_name}** (<@{user_id}>)"
    return f"<@{user_id}>"


def _actor_line(actor) -> str:
    return f"{actor}\n{actor.mention}"


# =============================================================================
# Quarantine Notifications
# =============================================================================

def user_notification_text(user_id: int, timeout_ms: int) -> str:
    """Plain-text mention posted to the user-notification channel."""
    return (
        f"<@{user_id}>\n"
        f" > Your account has been temporarily suspended for {_timeout_text(timeout_ms)} "
        "due to detected spam activity or security concerns. During this time, you cannot "
        "view or send messages. Please wait for the timeout period to end. Contact support "
        "if you believe this is an error."
    )


def build_security_dm(timeout_ms: int) -> discord.Embed:
    """DM sent to the quarantined user."""
    description = "\n".join([
        "**Your account has been temporarily restricted due to suspicious activity.**",
        "",
        "🚨 **What happened?**",
        "Our security system detected potential spam/malicious activity from your account, including:",
        "• Multiple image attachments with mass pings across channels",
        "• Suspicious link sharing across multiple channels",
        "• Pattern consistent with compromised accounts",
        "",
        "🛡️ **Your account may be compromised**",
        "This usually happens when:",
        "• Your password was leaked or guessed",
        "• You clicked on a malicious link or downloaded malware",
        "• Your account was accessed by unauthorized persons",
        "",
        "🔧 **What you should do:**",
        "1. **Change your Discord password immediately**",
        "2. **Enable 2FA on your account**",
        "3. **Run antivirus scan on your device**",
        "4. **Check for unauthorized applications in Discord settings**",
        "5. **Log out of Discord on all devices and log back in**",
        "",
        "📞 **Appeal Process:**",
        "Once you've secured your account, you can appeal to restore your roles in the appeals channel.",
        "",
        f"⏰ **Timeout Duration:** {_timeout_text(timeout_ms)}",
        "**This is for your protection and server safety.**",
    ])
    embed = discord.Embed(
        title="🔒 Account Security Alert",
        description=description,
        color=EmbedColors.INCIDENT,
        timestamp=_now(),
    )
    embed.set_footer(text="This is an automated security measure")
    return embed


def build_dm_failed_embed(user_id: int, display_name: str, reason: str) -> discord.Embed:
    embed = discord.Embed(
        title="📧 DM Delivery Failed",
        color=EmbedColors.ALERT,
        timestamp=_now(),
    )
    embed.add_field(name="User", value=f"{display_name or 'Unknown'} ({user_id})", inline=True)
    embed.add_field(name="User Mention", value=f"<@{user_id}>", inline=True)
    embed.add_field(name="Reason", value=reason or "Unknown", inline=False)
    return embed


def _actions_taken(report: QuarantineReport, timeout_ms: int) -> str:
    actions = [f"• Spam messages deleted ({report.messages_deleted}/{report.messages_attempted})"]
    if report.timeout_applied:
        actions.append(f"• User timed out ({format_duration_ms(timeout_ms, show_seconds=False)})")
    if report.removed_role_ids:
        actions.append(f"• {len(report.removed_role_ids)} roles removed and stored for restoration")
    if report.suspension_role_applied:
        actions.append("• Compromised account role added")
    if report.missing_permissions:
        actions.append(f"• ⚠️ Skipped punishment, missing: {', '.join(report.missing_permissions)}")
    if report.failed_role_ids:
        actions.append(f"• ⚠️ {len(report.failed_role_ids)} roles could not be removed")
    return "\n".join(actions)


def build_incident_embed(
    event: InboundEvent,
    captured_role_ids: Sequence[int],
    stats: WindowStats,
    rule: SpamRule,
    report: QuarantineReport,
    timeout_ms: int,
) -> discord.Embed:
    """Audit-log entry for one quarantine."""
    embed = discord.Embed(
        title="🚨 Multi-Channel Spam Detection",
        color=EmbedColors.INCIDENT,
        timestamp=_now(),
    )

    embed.add_field(
        name="👤 User Info",
        value=f"**Name:** {event.display_name or 'Unknown'}\n**ID:** `{event.user_id}`\n**Mention:** <@{event.user_id}>",
        inline=True,
    )
    embed.add_field(
        name="📅 Account Info",
        value=f"**Created:** {_relative(event.account_created_at)}\n**Joined:** {_relative(event.joined_at)}",
        inline=True,
    )

    shown = [f"<@&{role_id}>" for role_id in captured_role_ids[:MAX_LOGGED_ROLES]]
    embed.add_field(
        name="🎭 User Roles",
        value=f"**Count:** {len(captured_role_ids)}\n**Roles:** {', '.join(shown) if shown else 'No roles'}",
        inline=False,
    )

    embed.add_field(
        name="📊 Activity Summary",
        value="\n".join([
            f"• Messages: {stats.message_count}",
            f"• Channels: {stats.channel_count}",
            f"• Images: {stats.total_images}",
            f"• Links: {stats.total_links}",
            f"• Suspicious Links: {stats.suspicious_links}",
            f"• @everyone: {stats.mass_mention_count}",
        ]),
        inline=True,
    )
    embed.add_field(name="🎯 Detection Reason", value=rule.description, inline=True)
    embed.add_field(name="⚡ Actions Taken", value=_actions_taken(report, timeout_ms), inline=False)
    embed.add_field(name="🔧 Next Steps", value="User can appeal once account is secured", inline=False)
    embed.set_footer(text=FOOTER_TEXT)
    return embed


def build_server_alert(user_id: int, display_name: str, timeout_ms: int) -> discord.Embed:
    description = "\n".join([
        f"{_user_line(user_id, display_name)} has been temporarily restricted due to suspicious multi-channel spam activity.",
        "",
        "🚨 **Their account appears to be compromised** and was posting spam content "
        "(images/links) across multiple channels with mass pings.",
        "",
        "🛡️ **Security measures applied:**",
        f"• Account timed out for {_timeout_text(timeout_ms)}",
        "• Roles temporarily removed and stored",
        "• Compromised account role applied",
        "• User notified about the security issue",
        "• Spam messages cleaned up",
        "",
        "📞 **If this is your friend:** Let them know their account may be hacked "
        "and they should secure it immediately.",
        "",
        "🎫 **Appeal process:** Once secured, they can appeal in the designated channel.",
    ])
    embed = discord.Embed(
        title="🔒 Compromised Account Detected",
        description=description,
        color=EmbedColors.ALERT,
        timestamp=_now(),
    )
    embed.set_footer(text="This is an automated security response")
    return embed


# =============================================================================
# Restoration
# =============================================================================

def build_restore_reply(user_id: int, result: RestoreResult, actor) -> discord.Embed:
    embed = discord.Embed(
        title="✅ Roles Restored",
        description=f"Successfully restored roles for <@{user_id}>",
        color=EmbedColors.SUCCESS,
        timestamp=_now(),
    )
    embed.add_field(name="User Info", value=f"**ID:** `{user_id}`\n**Mention:** <@{user_id}>", inline=True)
    embed.add_field(
        name="Restoration Stats",
        value=f"**Restored:** {result.restored_count}/{result.total} roles\n**Failed:** {len(result.failed_role_ids)} roles",
        inline=True,
    )
    embed.add_field(name="Action By", value=_actor_line(actor), inline=True)

    if result.failed_role_ids:
        embed.add_field(
            name="⚠️ Failed Roles",
            value=", ".join(f"<@&{role_id}>" for role_id in result.failed_role_ids),
            inline=False,
        )
    return embed


def build_restore_log_embed(user_id: int, result: RestoreResult, actor) -> discord.Embed:
    embed = discord.Embed(title="🔄 Role Restoration", color=EmbedColors.SUCCESS, timestamp=_now())
    embed.add_field(name="User", value=f"<@{user_id}> ({user_id})", inline=False)
    embed.add_field(name="Restored By", value=f"{actor} ({actor.mention})", inline=False)
    embed.add_field(name="Results", value=f"{result.restored_count}/{result.total} roles restored", inline=False)
    return embed


# =============================================================================
# Operator Commands
# =============================================================================

def _channel_ref(channel_id: Optional[int]) -> str:
    return f"<#{channel_id}>" if channel_id else "❌ Not set"


def build_status_embed(config: AntiSpamConfig, tracked_users: int, stored_snapshots: int) -> discord.Embed:
    embed = discord.Embed(
        title="🛡️ Anti-Spam System Status",
        color=EmbedColors.SUCCESS if config.enabled else EmbedColors.DISABLED,
        timestamp=_now(),
    )
    embed.add_field(name="Status", value="✅ Enabled" if config.enabled else "❌ Disabled", inline=True)
    embed.add_field(name="Image Threshold", value=f"{config.image_threshold} images", inline=True)
    embed.add_field(name="Link Threshold", value=f"{config.link_threshold} links", inline=True)
    embed.add_field(name="Time Window", value=f"{config.time_window_ms / MS_PER_SECOND:g}s", inline=True)
    embed.add_field(name="Active Histories", value=f"{tracked_users} users", inline=True)
    embed.add_field(name="Stored Roles", value=f"{stored_snapshots} users", inline=True)
    embed.add_field(name="Detection Types", value="\n".join(DETECTION_TYPES), inline=False)
    embed.add_field(
        name="Channels",
        value="\n".join([
            f"Log: {_channel_ref(config.log_channel_id)}",
            f"Alert: {_channel_ref(config.alert_channel_id)}",
            f"Notification: {_channel_ref(config.notification_channel_id)}",
            f"DM Failures: {_channel_ref(config.dm_fail_log_channel_id)}",
        ]),
        inline=False,
    )
    embed.add_field(
        name="Compromised Role",
        value=f"<@&{config.compromised_role_id}>" if config.compromised_role_id else "❌ Not set",
        inline=True,
    )
    embed.add_field(
        name="Trusted Domains",
        value=f"{len(config.trusted_domains)} domains" if config.trusted_domains else "❌ None set",
        inline=True,
    )
    embed.set_footer(text=FOOTER_TEXT)
    return embed


def _indicators(event: MessageEvent) -> str:
    indicators = []
    if event.attachment_count > 0:
        indicators.append(f"{event.attachment_count} img")
    if event.url_count > 0:
        indicators.append(f"{event.url_count} links")
    if event.suspicious_url_count > 0:
        indicators.append(f"{event.suspicious_url_count} sus")
    if event.has_mass_mention:
        indicators.append("@everyone")
    return ", ".join(indicators) if indicators else "text"


def build_debug_embed(
    user_id: int,
    history: Sequence[MessageEvent],
    snapshot: Optional[RoleSnapshot],
) -> discord.Embed:
    """Ledger and snapshot dump for one user."""
    embed = discord.Embed(title="🐛 User Debug Information", color=EmbedColors.INFO, timestamp=_now())
    embed.add_field(name="User Info", value=f"**ID:** {user_id}\n**Mention:** <@{user_id}>", inline=True)
    embed.add_field(name="Message History", value=f"{len(history)} messages" if history else "None", inline=True)
    embed.add_field(name="Stored Roles", value=f"{len(snapshot.role_ids)} roles" if snapshot else "None", inline=True)

    if history:
        recent = "\n".join(
            f"{discord.utils.format_dt(event.timestamp, 'T')} - {_indicators(event)}"
            for event in history[-DEBUG_RECENT_ENTRIES:]
        )
        embed.add_field(name=f"Recent Activity (Last {DEBUG_RECENT_ENTRIES})", value=recent, inline=False)
        embed.add_field(
            name="Activity Summary",
            value="\n".join([
                f"Total Images: {sum(e.attachment_count for e in history)}",
                f"Total Links: {sum(e.url_count for e in history)}",
                f"Suspicious Links: {sum(e.suspicious_url_count for e in history)}",
                f"Unique Channels: {len({e.channel_id for e in history})}",
            ]),
            inline=True,
        )

    if snapshot:
        embed.add_field(
            name="Stored Role Data",
            value="\n".join([
                f"Stored: {_relative(snapshot.captured_at)}",
                f"Reason: {snapshot.reason}",
                f"User: {snapshot.display_name or 'Unknown'}",
            ]),
            inline=True,
        )
    return embed


def build_toggle_embed(enabled: bool, actor) -> discord.Embed:
    embed = discord.Embed(
        title="🔧 System Toggled",
        description=f"Anti-Spam System is now **{'ENABLED' if enabled else 'DISABLED'}**",
        color=EmbedColors.SUCCESS if enabled else EmbedColors.DISABLED,
        timestamp=_now(),
    )
    embed.add_field(name="Detection Types", value="\n".join(DETECTION_TYPES), inline=True)
    embed.add_field(name="Changed By", value=_actor_line(actor), inline=True)
    return embed


def build_toggle_log_embed(enabled: bool, actor) -> discord.Embed:
    embed = discord.Embed(
        title="🔧 Anti-Spam System Toggle",
        color=EmbedColors.SUCCESS if enabled else EmbedColors.DISABLED,
        timestamp=_now(),
    )
    embed.add_field(name="Status", value="✅ ENABLED" if enabled else "❌ DISABLED", inline=True)
    embed.add_field(name="Changed By", value=f"{actor} ({actor.mention})", inline=True)
    return embed


def build_domain_added_embed(domain: str, actor, total: int) -> discord.Embed:
    embed = discord.Embed(title="✅ Trusted Domain Added", color=EmbedColors.SUCCESS, timestamp=_now())
    embed.add_field(name="Domain", value=f"`{domain}`", inline=True)
    embed.add_field(name="Added By", value=_actor_line(actor), inline=True)
    embed.add_field(name="Total Trusted", value=f"{total} domains", inline=True)
    return embed


def build_domain_removed_embed(domain: str, actor, remaining: int) -> discord.Embed:
    embed = discord.Embed(title="✅ Trusted Domain Removed", color=EmbedColors.REMOVED, timestamp=_now())
    embed.add_field(name="Domain", value=f"`{domain}`", inline=True)
    embed.add_field(name="Removed By", value=_actor_line(actor), inline=True)
    embed.add_field(name="Remaining", value=f"{remaining} domains", inline=True)
    return embed


def build_domain_list_embed(domains: Sequence[str]) -> discord.Embed:
    embed = discord.Embed(
        title="📋 Trusted Domains List",
        description="\n".join(f"{index}. `{domain}`" for index, domain in enumerate(domains, start=1)),
        color=EmbedColors.INFO,
        timestamp=_now(),
    )
    embed.add_field(name="Total Domains", value=str(len(domains)), inline=True)
    embed.add_field(name="Effect", value="Links from these domains are not considered suspicious", inline=True)
    return embed


def build_help_embed(prefix: str = "!") -> discord.Embed:
    embed = discord.Embed(title="🛡️ Anti-Spam Commands", color=EmbedColors.INFO)
    embed.add_field(name="📊 Status", value=f"`{prefix}antispam status` - Show system status", inline=False)
    embed.add_field(name="🔄 Restore", value=f"`{prefix}antispam restore <user_id>` - Restore user roles", inline=False)
    embed.add_field(name="🔧 Toggle", value=f"`{prefix}antispam toggle` - Enable/disable system", inline=False)
    embed.add_field(name="🐛 Debug", value=f"`{prefix}antispam debug <user_id>` - Show user activity", inline=False)
    embed.add_field(
        name="🌐 Trusted Domains",
        value=f"`{prefix}antispam domains add|remove <domain>` / `{prefix}antispam domains list`",
        inline=False,
    )
    embed.add_field(
        name="🔐 Access",
        value="Holders of a command role. Server administrators and the bot developer always have access.",
        inline=False,
    )
    embed.set_footer(text=FOOTER_TEXT)
    return embed


__all__ = [
    "user_notification_text",
    "build_security_dm",
    "build_dm_failed_embed",
    "build_incident_embed",
    "build_server_alert",
    "build_restore_reply",
    "build_restore_log_embed",
    "build_status_embed",
    "build_debug_embed",
    "build_toggle_embed",
    "build_toggle_log_embed",
    "build_domain_added_embed",
    "build_domain_removed_embed",
    "build_domain_list_embed",
    "build_help_embed",
]

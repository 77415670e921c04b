"""
SpamShield - Quarantine Orchestrator
====================================

Runs the response to a positive classification.

DESIGN:
    Steps run in a fixed order and each one is isolated: a failed step is
    logged and recorded on the QuarantineReport, and the next step still
    runs.

    1. Snapshot the member's roles (last write wins)
    2. Delete the windowed messages (already-deleted counts as done)
    3. Strip roles, keeping preserved ones and anything at/above the bot's
       top role, then add the compromised role
    4. Apply the timeout
    5. Notify: user channel, DM (+ DM-failure log), audit log, server alert

    Steps 3-4 are skipped entirely when the bot lacks Manage Roles or
    Moderate Members. Steps 1, 2 and 5 never depend on that check.
"""

from datetime import datetime
from typing import Sequence

from spamshield.core.config import AntiSpamConfig
from spamshield.core.logger import logger

from . import embeds
from .classifier import SpamRule, summarize
from .constants import QUARANTINE_REASON, SNAPSHOT_REASON
from .gateway import GuildGateway
from .models import EffectResult, InboundEvent, MessageEvent, QuarantineReport, RoleSnapshot
from .snapshots import RoleSnapshotStore


class QuarantineOrchestrator:
    """Applies quarantine effects through a GuildGateway."""

    def __init__(self, config: AntiSpamConfig, snapshots: RoleSnapshotStore) -> None:
        self.config = config
        self.snapshots = snapshots

    async def quarantine(
        self,
        event: InboundEvent,
        rule: SpamRule,
        window: Sequence[MessageEvent],
        gateway: GuildGateway,
        now: datetime,
    ) -> QuarantineReport:
        """
        Quarantine the author of `event`.

        Args:
            event: The message that triggered detection.
            rule: The rule that matched.
            window: The user's windowed ledger entries (messages to delete).
            gateway: Effect surface for the event's guild.
            now: Detection time.

        Returns:
            Per-step outcome record.
        """
        report = QuarantineReport(user_id=event.user_id, rule_key=rule.key)

        logger.tree("Compromised Account Detected", [
            ("User", f"{event.display_name or 'Unknown'} ({event.user_id})"),
            ("Guild ID", str(event.guild_id)),
            ("Rule", rule.description),
            ("Window Messages", str(len(window))),
        ], emoji="🚨")

        snapshot = self._take_snapshot(event, gateway, now)

        try:
            await self._delete_messages(window, gateway, report)
        except Exception as e:
            logger.error("Spam Message Cleanup Failed", [
                ("User ID", str(event.user_id)),
                ("Error", str(e)[:200]),
            ])

        try:
            await self._apply_punishment(snapshot, gateway, report)
        except Exception as e:
            logger.error("Quarantine Punishment Failed", [
                ("User ID", str(event.user_id)),
                ("Error", str(e)[:200]),
            ])

        await self._notify(event, snapshot, rule, window, gateway, report, now)

        logger.tree("Quarantine Complete", [
            ("User ID", str(event.user_id)),
            ("Messages Deleted", f"{report.messages_deleted}/{report.messages_attempted}"),
            ("Roles Removed", str(len(report.removed_role_ids))),
            ("Roles Failed", str(len(report.failed_role_ids))),
            ("Compromised Role", "Applied" if report.suspension_role_applied else "Not applied"),
            ("Timeout", "Applied" if report.timeout_applied else "Not applied"),
            ("Notified", ", ".join(report.notifications_sent) or "None"),
        ], emoji="🔒")

        return report

    # =========================================================================
    # Step 1: Snapshot
    # =========================================================================

    def _take_snapshot(self, event: InboundEvent, gateway: GuildGateway, now: datetime) -> RoleSnapshot:
        default_role_id = gateway.default_role_id
        snapshot = RoleSnapshot(
            user_id=event.user_id,
            role_ids=tuple(r for r in event.member_role_ids if r != default_role_id),
            captured_at=now,
            reason=SNAPSHOT_REASON,
            display_name=event.display_name,
        )

        previous = self.snapshots.save(snapshot)
        if previous is not None:
            logger.warning("Role Snapshot Overwritten", [
                ("User ID", str(event.user_id)),
                ("Previous Roles", str(len(previous.role_ids))),
                ("New Roles", str(len(snapshot.role_ids))),
            ])
        else:
            logger.debug("Role Snapshot Stored", [
                ("User ID", str(event.user_id)),
                ("Roles", str(len(snapshot.role_ids))),
            ])
        return snapshot

    # =========================================================================
    # Step 2: Message Cleanup
    # =========================================================================

    async def _delete_messages(
        self,
        window: Sequence[MessageEvent],
        gateway: GuildGateway,
        report: QuarantineReport,
    ) -> None:
        for entry in window:
            report.messages_attempted += 1
            result = await gateway.delete_message(entry.channel_id, entry.message_id)
            if result.ok:
                report.messages_deleted += 1
            else:
                logger.warning("Spam Message Delete Failed", [
                    ("Channel ID", str(entry.channel_id)),
                    ("Message ID", str(entry.message_id)),
                    ("Error", result.error or "Unknown"),
                ])

    # =========================================================================
    # Steps 3-4: Roles & Timeout
    # =========================================================================

    async def _apply_punishment(
        self,
        snapshot: RoleSnapshot,
        gateway: GuildGateway,
        report: QuarantineReport,
    ) -> None:
        missing = gateway.missing_permissions()
        if missing:
            report.missing_permissions = list(missing)
            logger.warning("Quarantine Punishment Skipped", [
                ("User ID", str(snapshot.user_id)),
                ("Missing Permissions", ", ".join(missing)),
            ])
            return

        user_id = snapshot.user_id

        for role_id in snapshot.role_ids:
            if role_id in self.config.preserve_role_ids or not gateway.can_manage_role(role_id):
                report.kept_role_ids.append(role_id)
                continue
            result = await gateway.remove_role(user_id, role_id, QUARANTINE_REASON)
            if result.ok:
                report.removed_role_ids.append(role_id)
            else:
                report.failed_role_ids.append(role_id)

        if report.failed_role_ids:
            logger.warning("Some Roles Not Removed", [
                ("User ID", str(user_id)),
                ("Failed", ", ".join(str(r) for r in report.failed_role_ids)),
            ])

        await self._add_compromised_role(user_id, gateway, report)

        result = await gateway.set_timeout(user_id, self.config.timeout_duration_ms, QUARANTINE_REASON)
        report.timeout_applied = result.ok
        if not result.ok:
            logger.warning("Quarantine Timeout Failed", [
                ("User ID", str(user_id)),
                ("Error", result.error or "Unknown"),
            ])

    async def _add_compromised_role(
        self,
        user_id: int,
        gateway: GuildGateway,
        report: QuarantineReport,
    ) -> None:
        role_id = self.config.compromised_role_id
        if not role_id:
            logger.warning("No Compromised Role Configured", [("User ID", str(user_id))])
            return
        if not gateway.role_exists(role_id):
            logger.warning("Compromised Role Not Found", [("Role ID", str(role_id))])
            return
        if not gateway.can_manage_role(role_id):
            logger.warning("Compromised Role Above Bot", [
                ("Role ID", str(role_id)),
                ("Action", "Move the bot's role above it"),
            ])
            return

        result = await gateway.add_role(user_id, role_id, QUARANTINE_REASON)
        report.suspension_role_applied = result.ok
        if not result.ok:
            logger.warning("Compromised Role Add Failed", [
                ("User ID", str(user_id)),
                ("Error", result.error or "Unknown"),
            ])

    # =========================================================================
    # Step 5: Notifications
    # =========================================================================

    async def _notify(
        self,
        event: InboundEvent,
        snapshot: RoleSnapshot,
        rule: SpamRule,
        window: Sequence[MessageEvent],
        gateway: GuildGateway,
        report: QuarantineReport,
        now: datetime,
    ) -> None:
        config = self.config
        timeout_ms = config.timeout_duration_ms

        async def deliver(name: str, send) -> EffectResult:
            try:
                result = await send()
            except Exception as e:
                logger.error("Quarantine Notification Failed", [
                    ("Notification", name),
                    ("User ID", str(event.user_id)),
                    ("Error", str(e)[:200]),
                ])
                result = EffectResult.failure(str(e)[:200])
            if result.ok:
                report.notifications_sent.append(name)
            else:
                report.notifications_failed.append(name)
            return result

        if config.notification_channel_id:
            await deliver("notification", lambda: gateway.send_message(
                config.notification_channel_id,
                content=embeds.user_notification_text(event.user_id, timeout_ms),
            ))
        else:
            logger.debug("No notification channel configured")

        dm_result = await deliver("dm", lambda: gateway.send_direct_message(
            event.user_id, embed=embeds.build_security_dm(timeout_ms),
        ))
        if not dm_result.ok:
            logger.info("Security DM Not Delivered", [
                ("User ID", str(event.user_id)),
                ("Error", dm_result.error or "Unknown"),
            ])
            if config.dm_fail_log_channel_id:
                await deliver("dm_failure_log", lambda: gateway.send_message(
                    config.dm_fail_log_channel_id,
                    embed=embeds.build_dm_failed_embed(
                        event.user_id, event.display_name, dm_result.error or "DMs disabled or blocked",
                    ),
                ))

        if config.log_channel_id:
            await deliver("incident_log", lambda: gateway.send_message(
                config.log_channel_id,
                embed=embeds.build_incident_embed(
                    event, snapshot.role_ids, summarize(window, now), rule, report, timeout_ms,
                ),
            ))

        if config.alert_channel_id:
            await deliver("server_alert", lambda: gateway.send_message(
                config.alert_channel_id,
                embed=embeds.build_server_alert(event.user_id, event.display_name, timeout_ms),
            ))


__all__ = ["QuarantineOrchestrator"]

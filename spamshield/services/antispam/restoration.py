"""
SpamShield - Role Restoration
=============================

Reverses a quarantine from the stored role snapshot.

Restoration is one-shot: once the member has been found, the snapshot is
dropped whatever the outcome, so a second call for the same user raises
SnapshotNotFound. Roles that fail to come back are reported, not retried.
"""

from typing import Optional

from spamshield.core.config import AntiSpamConfig
from spamshield.core.logger import logger

from .gateway import GuildGateway
from .models import RestoreResult
from .snapshots import RoleSnapshotStore


class RestorationError(Exception):
    """Base class for restoration failures surfaced to operators."""

    def __init__(self, user_id: int, message: str) -> None:
        super().__init__(message)
        self.user_id = user_id


class SnapshotNotFound(RestorationError):
    """No stored role data for the user."""

    def __init__(self, user_id: int) -> None:
        super().__init__(user_id, f"No stored role data for user {user_id}")


class MemberNotFound(RestorationError):
    """The user is no longer a member of the guild."""

    def __init__(self, user_id: int) -> None:
        super().__init__(user_id, f"User {user_id} is not a member of this server")


class RestorationService:
    """Restores snapshotted roles and lifts the quarantine timeout."""

    def __init__(self, config: AntiSpamConfig, snapshots: RoleSnapshotStore) -> None:
        self.config = config
        self.snapshots = snapshots

    async def restore(self, user_id: int, gateway: GuildGateway, actor_name: Optional[str] = None) -> RestoreResult:
        """
        Restore a quarantined member's roles.

        Args:
            user_id: The quarantined user.
            gateway: Effect surface for the member's guild.
            actor_name: Operator running the restore, for audit reasons.

        Returns:
            Restored/failed tally.

        Raises:
            SnapshotNotFound: No snapshot stored for the user.
            MemberNotFound: The user left the guild (snapshot is kept).
        """
        snapshot = self.snapshots.get(user_id)
        if snapshot is None:
            raise SnapshotNotFound(user_id)

        if await gateway.fetch_member_role_ids(user_id) is None:
            logger.warning("Role Restore Failed", [
                ("User ID", str(user_id)),
                ("Reason", "Member not in guild"),
            ])
            raise MemberNotFound(user_id)

        reason = f"Role restoration by {actor_name}" if actor_name else "Role restoration"
        failed = []
        restored = 0

        try:
            compromised_role_id = self.config.compromised_role_id
            if compromised_role_id:
                result = await gateway.remove_role(user_id, compromised_role_id, reason)
                if not result.ok:
                    logger.warning("Compromised Role Remove Failed", [
                        ("User ID", str(user_id)),
                        ("Error", result.error or "Unknown"),
                    ])

            for role_id in snapshot.role_ids:
                result = await gateway.add_role(user_id, role_id, reason)
                if result.ok:
                    restored += 1
                else:
                    failed.append(role_id)

            result = await gateway.set_timeout(
                user_id, None,
                f"Timeout removed by {actor_name}" if actor_name else "Timeout removed",
            )
            if not result.ok:
                logger.warning("Timeout Clear Failed", [
                    ("User ID", str(user_id)),
                    ("Error", result.error or "Unknown"),
                ])
        finally:
            self.snapshots.delete(user_id)

        outcome = RestoreResult(restored_count=restored, failed_role_ids=failed, total=len(snapshot.role_ids))

        logger.tree("Roles Restored", [
            ("User", f"{snapshot.display_name or 'Unknown'} ({user_id})"),
            ("Restored", f"{outcome.restored_count}/{outcome.total}"),
            ("Failed", ", ".join(str(r) for r in failed) or "None"),
            ("By", actor_name or "Unknown"),
        ], emoji="🔄")

        return outcome


__all__ = [
    "RestorationError",
    "SnapshotNotFound",
    "MemberNotFound",
    "RestorationService",
]

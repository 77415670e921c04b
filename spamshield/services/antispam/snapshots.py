"""
SpamShield - Role Snapshot Store
================================

Pre-quarantine role sets, one per user. A second quarantine of the same
user replaces the stored snapshot; restoration pops it.
"""

from typing import Dict, Optional

from .models import RoleSnapshot


class RoleSnapshotStore:
    """In-memory user id -> RoleSnapshot map."""

    def __init__(self) -> None:
        self._snapshots: Dict[int, RoleSnapshot] = {}

    def __len__(self) -> int:
        return len(self._snapshots)

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._snapshots

    def save(self, snapshot: RoleSnapshot) -> Optional[RoleSnapshot]:
        """Store a snapshot, returning the one it replaced (if any)."""
        previous = self._snapshots.get(snapshot.user_id)
        self._snapshots[snapshot.user_id] = snapshot
        return previous

    def get(self, user_id: int) -> Optional[RoleSnapshot]:
        return self._snapshots.get(user_id)

    def delete(self, user_id: int) -> Optional[RoleSnapshot]:
        return self._snapshots.pop(user_id, None)


__all__ = ["RoleSnapshotStore"]

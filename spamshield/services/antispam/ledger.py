"""
SpamShield - Activity Ledger
============================

Per-user, time-ordered log of recent message events.

MEMORY MANAGEMENT:
    Entries are only ever appended (record) or dropped (sweep). The sweep
    removes everything older than the retention horizon and deletes users
    left with no entries, so memory stays bounded over long uptimes.

    All access happens on the bot's event loop; record/window/sweep are
    synchronous, so no two handlers interleave inside one of them.
"""

from bisect import bisect_left, bisect_right
from datetime import datetime, timedelta
from typing import Dict, List

from .models import MessageEvent


class ActivityLedger:
    """Mapping of user id -> MessageEvents ordered by timestamp."""

    def __init__(self) -> None:
        self._entries: Dict[int, List[MessageEvent]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._entries

    # =========================================================================
    # Writes
    # =========================================================================

    def record(self, user_id: int, event: MessageEvent) -> None:
        """
        Append an event to a user's history.

        An event older than the newest entry is inserted in timestamp order.
        """
        history = self._entries.setdefault(user_id, [])
        if history and event.timestamp < history[-1].timestamp:
            keys = [entry.timestamp for entry in history]
            history.insert(bisect_right(keys, event.timestamp), event)
            return
        history.append(event)

    def sweep(self, now: datetime, max_age_ms: int) -> int:
        """
        Drop entries older than max_age_ms and users with nothing left.

        Args:
            now: Reference time.
            max_age_ms: Retention horizon in milliseconds.

        Returns:
            Number of users removed from the ledger.
        """
        max_age = timedelta(milliseconds=max_age_ms)
        removed = 0

        for user_id, history in list(self._entries.items()):
            kept = [entry for entry in history if now - entry.timestamp <= max_age]
            if kept:
                self._entries[user_id] = kept
            else:
                del self._entries[user_id]
                removed += 1

        return removed

    # =========================================================================
    # Reads
    # =========================================================================

    def window(self, user_id: int, now: datetime, duration_ms: int) -> List[MessageEvent]:
        """
        Return the user's events with `now - timestamp <= duration_ms`.

        History is time-ordered, so the result is a contiguous suffix.
        Events stamped after `now` are included (non-positive age).
        """
        history = self._entries.get(user_id)
        if not history:
            return []

        cutoff = now - timedelta(milliseconds=duration_ms)
        keys = [entry.timestamp for entry in history]
        return history[bisect_left(keys, cutoff):]

    def history(self, user_id: int) -> List[MessageEvent]:
        """Copy of the user's full retained history."""
        return list(self._entries.get(user_id, []))


__all__ = ["ActivityLedger"]

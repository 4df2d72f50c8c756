"""Append-only activity log writer."""

import logging
from datetime import UTC, datetime

from cloudops.core.store import RowStore, StoreResponseError
from cloudops.schemas.activity import ActivityLogEntry

logger = logging.getLogger(__name__)

ACTIVITY_TABLE = "activity_log"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(UTC).isoformat()


class ActivityLog:
    """Writes one ``activity_log`` row per unit of work for a principal.

    A store that rejects the row is logged and tolerated; connection failures
    propagate to the caller.
    """

    def __init__(self, store: RowStore, actor: str, now: str | None = None):
        self.store = store
        self.actor = actor
        self.now = now or utc_now_iso()

    async def record(self, type: str, summary: str, status: str = "success") -> ActivityLogEntry:
        """Append an activity entry.

        Args:
            type: Entry type (e.g. "rule_run", "operation")
            summary: Human-readable description
            status: "success" or "error"

        Returns:
            The entry that was written (or attempted)
        """
        entry = ActivityLogEntry(
            actor=self.actor,
            type=type,
            summary=summary,
            status=status,
            created_at=self.now,
        )
        try:
            await self.store.insert(ACTIVITY_TABLE, entry.model_dump(), returning=False)
        except StoreResponseError as e:
            logger.warning(f"Activity entry '{type}' for {self.actor} not recorded: {e}")
        return entry

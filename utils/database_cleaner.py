"""Helpers to remove abandoned SESSION rows from the SQLite database."""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from dal.session_dal import SessionDAL
from services.interview.session_context import SessionContext

LOGGER = logging.getLogger(__name__)


class SessionCleaner:
    """Delete sessions that never received a message.

    Sessions younger than the grace window are kept so a session created
    a moment ago is not removed before its opening message lands. The
    active session is never removed.
    """

    def __init__(
        self,
        session_dal: SessionDAL,
        context: Optional[SessionContext] = None,
        grace_seconds: int = 120,
    ) -> None:
        """
        Args:
            session_dal: Shared SESSION data access layer.
            context: Active-session holder; its session is always kept.
            grace_seconds: Minimum age in seconds before an empty session is removed.
        """
        self.sessions = session_dal
        self.context = context
        self.grace_seconds = grace_seconds

    async def prune_empty_sessions(self) -> List[str]:
        """Delete empty sessions older than the grace window and return their ids."""
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=self.grace_seconds)
        candidates = await self.sessions.list_empty_sessions(cutoff.isoformat(timespec="microseconds"))

        removed: List[str] = []
        for session in candidates:
            if self.context is not None and self.context.is_active(session.id):
                continue
            if await self.sessions.delete_session(session.id):
                removed.append(session.id)
        if removed:
            LOGGER.info("Removed %d empty sessions", len(removed))
        return removed

"""Async Data Access Layer for SESSION rows.

Provides SessionDAL with the create/read/update/delete operations the
interview core relies on, compatible with
`utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from models.session_models import Session
from utils.database_init import AsyncDatabaseInitializer
from utils.identifiers import new_id, utc_timestamp


class SessionDAL:
    """Data access layer for SESSION records."""

    _COLUMNS = ("id", "company_name", "facilitator", "title", "finished", "created_at")
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_session(self, company_name: str, facilitator: str = "WorkflowSleuth") -> Session:
        """Insert a new SESSION row and return it.

        Args:
            company_name: Company/tenant label of the current user.
            facilitator: Label of the interviewing agent.
        """
        session = Session(
            id=new_id(),
            company_name=company_name,
            facilitator=facilitator,
            created_at=utc_timestamp(),
            title=None,
            finished=False,
        )
        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT INTO SESSION ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    session.id,
                    session.company_name,
                    session.facilitator,
                    session.title,
                    int(session.finished),
                    session.created_at,
                ),
            )
            await conn.commit()
        return session

    async def get_session(self, session_id: str) -> Optional[Session]:
        """Return the Session for `session_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM SESSION WHERE id = ?",
                (session_id,),
            )
            row = await cur.fetchone()
            return self._row_to_session(row) if row else None

    async def list_sessions(self) -> List[Session]:
        """List all sessions, newest first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM SESSION ORDER BY created_at DESC, rowid DESC"
            )
            rows = await cur.fetchall()
            return [self._row_to_session(r) for r in rows]

    async def list_sessions_with_messages(self) -> List[Session]:
        """List sessions that own at least one chat message, newest first."""
        columns = ", ".join(f"s.{col}" for col in self._COLUMNS)
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"""
                SELECT {columns} FROM SESSION s
                WHERE EXISTS (SELECT 1 FROM CHAT_MESSAGE m WHERE m.session_id = s.id)
                ORDER BY s.created_at DESC, s.rowid DESC
                """
            )
            rows = await cur.fetchall()
            return [self._row_to_session(r) for r in rows]

    async def list_empty_sessions(self, created_before: str) -> List[Session]:
        """List sessions with no messages created strictly before `created_before`."""
        columns = ", ".join(f"s.{col}" for col in self._COLUMNS)
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"""
                SELECT {columns} FROM SESSION s
                WHERE s.created_at < ?
                  AND NOT EXISTS (SELECT 1 FROM CHAT_MESSAGE m WHERE m.session_id = s.id)
                """,
                (created_before,),
            )
            rows = await cur.fetchall()
            return [self._row_to_session(r) for r in rows]

    async def update_title(self, session_id: str, title: str) -> bool:
        """Set the derived title. Returns True if a row was changed."""
        async with self._db.connection() as conn:
            await conn.execute("UPDATE SESSION SET title = ? WHERE id = ?", (title, session_id))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session; messages, workflows and solutions cascade."""
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM SESSION WHERE id = ?", (session_id,))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    @staticmethod
    def _row_to_session(row: Sequence[object]) -> Session:
        """Convert a DB row tuple into a Session."""
        return Session(
            id=row[0],
            company_name=row[1],
            facilitator=row[2],
            title=row[3],
            finished=bool(row[4]),
            created_at=row[5],
        )

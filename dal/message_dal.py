"""Async Data Access Layer for CHAT_MESSAGE rows."""

from __future__ import annotations

from typing import List, Optional, Sequence

from models.session_models import ASSISTANT_ROLE, USER_ROLE, ChatMessage
from utils.database_init import AsyncDatabaseInitializer
from utils.identifiers import new_id, utc_timestamp

VALID_ROLES = (USER_ROLE, ASSISTANT_ROLE)


class MessageDAL:
    """Append-only access to chat messages."""

    _COLUMNS = ("id", "session_id", "role", "content", "created_at")
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    def _new_message(self, session_id: str, role: str, content: str) -> ChatMessage:
        if role not in VALID_ROLES:
            raise ValueError(f"Unsupported message role '{role}'.")
        return ChatMessage(
            id=new_id(),
            session_id=session_id,
            role=role,
            content=content,
            created_at=utc_timestamp(),
        )

    async def create_message(self, session_id: str, role: str, content: str) -> ChatMessage:
        """Insert a message and return the stored row."""
        message = self._new_message(session_id, role, content)
        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT INTO CHAT_MESSAGE ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?)",
                (message.id, message.session_id, message.role, message.content, message.created_at),
            )
            await conn.commit()
        return message

    async def create_message_if_empty(self, session_id: str, role: str, content: str) -> Optional[ChatMessage]:
        """Insert a message only when the session has no messages yet.

        The check and insert run as one statement, so concurrent callers
        can never store two opening messages for the same session.

        Returns:
            The stored message, or None when the session already had messages.
        """
        message = self._new_message(session_id, role, content)
        async with self._db.connection() as conn:
            await conn.execute(
                f"""
                INSERT INTO CHAT_MESSAGE ({self._COLUMN_LIST})
                SELECT ?, ?, ?, ?, ?
                WHERE NOT EXISTS (SELECT 1 FROM CHAT_MESSAGE WHERE session_id = ?)
                """,
                (message.id, message.session_id, message.role, message.content, message.created_at, session_id),
            )
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
        return message if changed and changed[0] > 0 else None

    async def list_messages(self, session_id: str) -> List[ChatMessage]:
        """Return all messages of a session, oldest first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM CHAT_MESSAGE WHERE session_id = ? "
                "ORDER BY created_at ASC, rowid ASC",
                (session_id,),
            )
            rows = await cur.fetchall()
            return [self._row_to_message(r) for r in rows]

    async def count_messages(self, session_id: str) -> int:
        """Return the number of messages stored for a session."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "SELECT COUNT(*) FROM CHAT_MESSAGE WHERE session_id = ?", (session_id,)
            )
            row = await cur.fetchone()
            return int(row[0]) if row else 0

    @staticmethod
    def _row_to_message(row: Sequence[object]) -> ChatMessage:
        return ChatMessage(
            id=row[0],
            session_id=row[1],
            role=row[2],
            content=row[3],
            created_at=row[4],
        )

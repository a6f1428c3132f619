"""Key/value storage for the persisted client-side state."""

from __future__ import annotations

from typing import Optional

from utils.database_init import AsyncDatabaseInitializer


class ClientStateDAL:
    """Read and write single string values in CLIENT_STATE."""

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def get_value(self, key: str) -> Optional[str]:
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT value FROM CLIENT_STATE WHERE key = ?", (key,))
            row = await cur.fetchone()
            return row[0] if row else None

    async def set_value(self, key: str, value: str) -> None:
        async with self._db.connection() as conn:
            await conn.execute(
                "INSERT INTO CLIENT_STATE (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            await conn.commit()

    async def delete_value(self, key: str) -> None:
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM CLIENT_STATE WHERE key = ?", (key,))
            await conn.commit()

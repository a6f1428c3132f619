import os
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite


SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS SESSION (
        id TEXT PRIMARY KEY,
        company_name TEXT NOT NULL,
        facilitator TEXT NOT NULL,
        title TEXT,
        finished INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS CHAT_MESSAGE (
        id TEXT PRIMARY KEY,
        session_id TEXT NOT NULL REFERENCES SESSION(id) ON DELETE CASCADE,
        role TEXT NOT NULL,
        content TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_chat_message_session ON CHAT_MESSAGE(session_id, created_at)",
    """
    CREATE TABLE IF NOT EXISTS WORKFLOW (
        id TEXT PRIMARY KEY,
        session_id TEXT REFERENCES SESSION(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        start_event TEXT NOT NULL,
        end_event TEXT NOT NULL,
        people TEXT NOT NULL,
        systems TEXT NOT NULL,
        pain_point TEXT NOT NULL,
        score REAL,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_workflow_session ON WORKFLOW(session_id)",
    """
    CREATE TABLE IF NOT EXISTS AI_SOLUTION (
        id TEXT PRIMARY KEY,
        workflow_id TEXT NOT NULL REFERENCES WORKFLOW(id) ON DELETE CASCADE,
        step_label TEXT NOT NULL,
        suggestion TEXT NOT NULL,
        ai_tool TEXT NOT NULL,
        complexity TEXT NOT NULL,
        roi_score INTEGER NOT NULL,
        sources TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS CLIENT_STATE (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
)


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite record store using the DATABASE_DIR environment variable.

    - The database file is located at: <DATABASE_DIR>/app.db
    - DATABASE_DIR is required. A RuntimeError is raised if it is missing
      or invalid (not a directory and cannot be created).
    - On the first call to `ensure_database()` for a given instance the
      schema is created if missing. Existing rows survive restarts unless
      the instance was created with `reset=True`, in which case the file
      is deleted first.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    """

    def __init__(self, db_dir: Optional[Path | str] = None, reset: bool = False) -> None:
        env_dir = str(db_dir) if db_dir is not None else os.getenv("DATABASE_DIR")

        if env_dir is None or not env_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )

        db_dir = Path(env_dir).expanduser()

        # If the path exists but is not a directory, that's a configuration error.
        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR={env_dir!r} points to a file, not a directory "
                f"({db_dir}). Please set DATABASE_DIR to a directory path."
            )

        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {db_dir}"
            ) from exc

        self.db_dir = db_dir
        self.db_path = self.db_dir / "app.db"
        self.reset = reset

        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def ensure_database(self) -> None:
        """
        Ensure the SQLite database exists at `self.db_path` with all tables.

        On first call this will:
            - Delete any existing database file when `reset` is set.
            - Create the SESSION, CHAT_MESSAGE, WORKFLOW, AI_SOLUTION and
              CLIENT_STATE tables if they are missing.

        Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            if self.reset:
                for path in (
                    self.db_path,
                    self.db_path.with_name(self.db_path.name + "-wal"),
                    self.db_path.with_name(self.db_path.name + "-shm"),
                ):
                    try:
                        path.unlink(missing_ok=True)
                    except Exception as exc:
                        raise RuntimeError(
                            f"Failed to delete existing database at {path}"
                        ) from exc

            max_attempts = 3
            for attempt in range(1, max_attempts + 1):
                try:
                    async with aiosqlite.connect(self.db_path) as db:
                        await db.execute("PRAGMA journal_mode=WAL;")
                        for statement in SCHEMA_STATEMENTS:
                            await db.execute(statement)
                        await db.commit()
                    break
                except FileNotFoundError:
                    # On some platforms a transient missing file error may occur; retry a few times.
                    if attempt >= max_attempts:
                        raise
                    await asyncio.sleep(0.1 * attempt)

            self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        Foreign keys are enabled per connection so session deletes cascade.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            await conn.execute("PRAGMA foreign_keys=ON;")
            yield conn
        finally:
            await conn.close()

"""Async Data Access Layer for WORKFLOW and AI_SOLUTION rows.

People, systems and solution sources are stored as JSON text columns.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Sequence

from models.workflow_record import AISolution, WorkflowRecord
from utils.database_init import AsyncDatabaseInitializer
from utils.identifiers import new_id, utc_timestamp


def _load_json_list(raw: Optional[str]) -> List[Any]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return []
    return value if isinstance(value, list) else []


class WorkflowDAL:
    """Data access layer for extracted workflow records."""

    _COLUMNS = (
        "id",
        "session_id",
        "title",
        "start_event",
        "end_event",
        "people",
        "systems",
        "pain_point",
        "created_at",
        "score",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_workflow(self, record: WorkflowRecord) -> WorkflowRecord:
        """Insert a new WORKFLOW row and return it with id and timestamp set.

        Args:
            record: WorkflowRecord with `id=None` and the fields to insert.
        """
        stored = WorkflowRecord(
            id=new_id(),
            session_id=record.session_id,
            title=record.title,
            start_event=record.start_event,
            end_event=record.end_event,
            people=list(record.people),
            systems=list(record.systems),
            pain_point=record.pain_point,
            created_at=record.created_at or utc_timestamp(),
            score=record.score,
        )
        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT INTO WORKFLOW ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    stored.id,
                    stored.session_id,
                    stored.title,
                    stored.start_event,
                    stored.end_event,
                    json.dumps(stored.people),
                    json.dumps(stored.systems),
                    stored.pain_point,
                    stored.created_at,
                    stored.score,
                ),
            )
            await conn.commit()
        return stored

    async def count_workflows(self, session_id: str) -> int:
        """Return how many workflows a session owns."""
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT COUNT(*) FROM WORKFLOW WHERE session_id = ?", (session_id,))
            row = await cur.fetchone()
            return int(row[0]) if row else 0

    async def get_workflow(self, workflow_id: str) -> Optional[WorkflowRecord]:
        """Return the WorkflowRecord for `workflow_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM WORKFLOW WHERE id = ?", (workflow_id,)
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def list_workflows(self, session_id: str) -> List[WorkflowRecord]:
        """List a session's workflows in capture order."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM WORKFLOW WHERE session_id = ? "
                "ORDER BY created_at ASC, rowid ASC",
                (session_id,),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> WorkflowRecord:
        return WorkflowRecord(
            id=row[0],
            session_id=row[1],
            title=row[2],
            start_event=row[3],
            end_event=row[4],
            people=[str(p) for p in _load_json_list(row[5])],
            systems=[str(s) for s in _load_json_list(row[6])],
            pain_point=row[7],
            created_at=row[8],
            score=row[9],
        )


class AISolutionDAL:
    """Data access layer for automation suggestions attached to workflows."""

    _COLUMNS = (
        "id",
        "workflow_id",
        "step_label",
        "suggestion",
        "ai_tool",
        "complexity",
        "roi_score",
        "sources",
        "created_at",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_solutions(self, workflow_id: str, solutions: Iterable[AISolution]) -> List[AISolution]:
        """Insert many suggestions for one workflow and return them as stored."""
        stored: List[AISolution] = []
        for solution in solutions:
            stored.append(
                AISolution(
                    id=new_id(),
                    workflow_id=workflow_id,
                    step_label=solution.step_label,
                    suggestion=solution.suggestion,
                    ai_tool=solution.ai_tool,
                    complexity=solution.complexity,
                    roi_score=solution.roi_score,
                    sources=list(solution.sources),
                    created_at=utc_timestamp(),
                )
            )
        if not stored:
            return stored

        async with self._db.connection() as conn:
            await conn.executemany(
                f"INSERT INTO AI_SOLUTION ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        s.id,
                        s.workflow_id,
                        s.step_label,
                        s.suggestion,
                        s.ai_tool,
                        s.complexity,
                        s.roi_score,
                        json.dumps(s.sources) if s.sources else None,
                        s.created_at,
                    )
                    for s in stored
                ],
            )
            await conn.commit()
        return stored

    async def list_solutions(self, workflow_id: str) -> List[AISolution]:
        """Return suggestions for a workflow, highest ROI first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM AI_SOLUTION WHERE workflow_id = ? "
                "ORDER BY roi_score DESC, created_at ASC",
                (workflow_id,),
            )
            rows = await cur.fetchall()
            return [self._row_to_solution(r) for r in rows]

    @staticmethod
    def _row_to_solution(row: Sequence[object]) -> AISolution:
        sources: List[Dict[str, str]] = [
            {"title": str(s.get("title", "")), "url": str(s.get("url", ""))}
            for s in _load_json_list(row[7])
            if isinstance(s, dict)
        ]
        return AISolution(
            id=row[0],
            workflow_id=row[1],
            step_label=row[2],
            suggestion=row[3],
            ai_tool=row[4],
            complexity=row[5],
            roi_score=int(row[6]),
            sources=sources,
            created_at=row[8],
        )

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class WorkflowRecord:
    """In-memory representation of a row in the WORKFLOW table.

    Attributes:
        id: Primary key (None for new records).
        session_id: Owning session.
        title: Short label for the workflow.
        start_event: Trigger that starts the workflow.
        end_event: Outcome that marks the workflow finished.
        people: Ordered role names; empty means "confirmed none".
        systems: Ordered tool/artifact names; empty means "confirmed none".
        pain_point: Single sentence describing the main friction.
        created_at: ISO-8601 UTC timestamp when the row was inserted.
        score: Optional numeric score assigned later.
    """

    id: Optional[str]
    session_id: str
    title: str
    start_event: str
    end_event: str
    people: List[str] = field(default_factory=list)
    systems: List[str] = field(default_factory=list)
    pain_point: str = ""
    created_at: Optional[str] = None
    score: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "title": self.title,
            "start_event": self.start_event,
            "end_event": self.end_event,
            "people": list(self.people),
            "systems": list(self.systems),
            "pain_point": self.pain_point,
            "created_at": self.created_at,
            "score": self.score,
        }


@dataclass
class AISolution:
    """Automation suggestion derived from a stored workflow."""

    id: Optional[str]
    workflow_id: str
    step_label: str
    suggestion: str
    ai_tool: str
    complexity: str = "Medium"
    roi_score: int = 3
    sources: List[Dict[str, str]] = field(default_factory=list)
    created_at: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "step_label": self.step_label,
            "suggestion": self.suggestion,
            "ai_tool": self.ai_tool,
            "complexity": self.complexity,
            "roi_score": self.roi_score,
            "sources": [dict(source) for source in self.sources],
            "created_at": self.created_at,
        }

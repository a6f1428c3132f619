"""Environment-driven settings for the WorkflowSleuth service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not a number") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not an integer") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime configuration read from environment variables.

    Attributes:
        interview_model: Model used for the discovery interview.
        title_model: Model used to name sessions.
        solutions_model: Model used to suggest automation opportunities.
        interview_temperature: Sampling temperature for the interview.
        workflow_count_threshold: Workflow count at which the confirmation
            switches to the "many workflows captured" framing.
        serp_api_key: Optional SerpAPI key for solution research.
        log_level: Root logging level name.
    """

    interview_model: str = "gpt-4.1"
    title_model: str = "gpt-4o-mini"
    solutions_model: str = "gpt-4o"
    interview_temperature: float = 0.2
    workflow_count_threshold: int = 10
    serp_api_key: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            interview_model=os.getenv("OPENAI_MODEL", cls.interview_model),
            title_model=os.getenv("OPENAI_TITLE_MODEL", cls.title_model),
            solutions_model=os.getenv("OPENAI_SOLUTIONS_MODEL", cls.solutions_model),
            interview_temperature=_env_float("INTERVIEW_TEMPERATURE", cls.interview_temperature),
            workflow_count_threshold=_env_int("WORKFLOW_COUNT_THRESHOLD", cls.workflow_count_threshold),
            serp_api_key=os.getenv("SERP_API_KEY") or None,
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )


def database_reset_requested() -> bool:
    """Return True when DATABASE_RESET asks for a fresh database on startup."""
    return _env_flag("DATABASE_RESET")

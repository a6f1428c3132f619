"""Session domain models for interview workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from models.workflow_record import WorkflowRecord


USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"


@dataclass
class Session:
	"""In-memory representation of a row in the SESSION table."""

	id: str
	company_name: str
	facilitator: str
	created_at: str
	title: Optional[str] = None
	finished: bool = False


@dataclass
class ChatMessage:
	"""Persisted chat message; immutable once written."""

	id: str
	session_id: str
	role: str
	content: str
	created_at: str


@dataclass
class TranscriptMessage:
	"""Message shape held in the live transcript."""

	text: str
	is_bot: bool
	id: Optional[str] = None
	session_id: Optional[str] = None

	@classmethod
	def from_row(cls, message: ChatMessage) -> "TranscriptMessage":
		return cls(
			text=message.content,
			is_bot=message.role == ASSISTANT_ROLE,
			id=message.id,
			session_id=message.session_id,
		)

	@property
	def role(self) -> str:
		return ASSISTANT_ROLE if self.is_bot else USER_ROLE


class InterviewState(str, Enum):
	"""Explicit progress through the discovery script."""

	AWAITING_Q1 = "awaiting_q1"
	AWAITING_Q2 = "awaiting_q2"
	AWAITING_Q3 = "awaiting_q3"
	AWAITING_Q4 = "awaiting_q4"
	AWAITING_Q5 = "awaiting_q5"
	AWAITING_Q6 = "awaiting_q6"
	AWAITING_Q7 = "awaiting_q7"
	AWAITING_Q8 = "awaiting_q8"
	AWAITING_Q9 = "awaiting_q9"
	AWAITING_Q10 = "awaiting_q10"
	AWAITING_CONFIRMATION = "awaiting_confirmation"
	SAVED = "saved"
	DONE = "done"

	@classmethod
	def for_question(cls, number: int) -> "InterviewState":
		"""Return the AWAITING_Qn state for a 1-based question number."""
		if not 1 <= number <= 10:
			raise ValueError(f"Question number out of range: {number}")
		return cls[f"AWAITING_Q{number}"]


@dataclass
class TurnResult:
	"""Outcome of a single exchange, returned to the caller for display."""

	session_id: str
	transcript: List[TranscriptMessage]
	reply: str
	state: InterviewState
	workflow: Optional[WorkflowRecord] = None
	workflow_count: Optional[int] = None
	warnings: List[str] = field(default_factory=list)
	stale: bool = False

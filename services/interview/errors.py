"""Domain errors raised by the interview services."""

from __future__ import annotations


class InterviewError(RuntimeError):
	"""Base class for interview service failures."""


class SessionNotFoundError(InterviewError):
	"""The requested session does not exist in the record store."""

	def __init__(self, session_id: str) -> None:
		super().__init__(f"Session {session_id} not found")
		self.session_id = session_id

	def __str__(self) -> str:
		return f"Session {self.session_id} not found"


class SessionSwitchInProgressError(InterviewError):
	"""Another session switch is still being applied."""

"""Session lifecycle for the discovery interview."""

from __future__ import annotations

import logging
from typing import List, Optional

from dal.message_dal import MessageDAL
from dal.session_dal import SessionDAL
from models.session_models import Session, TranscriptMessage, TurnResult
from services.interview.errors import SessionNotFoundError, SessionSwitchInProgressError
from services.interview.prompts import FACILITATOR
from services.interview.session_context import SessionContext

LOGGER = logging.getLogger(__name__)


class SessionManager:
	"""Establish the active session and keep its transcript in sync with the store."""

	def __init__(self, context: SessionContext, session_dal: SessionDAL, message_dal: MessageDAL) -> None:
		self.context = context
		self.sessions = session_dal
		self.messages = message_dal
		self.initialization_error: Optional[str] = None
		self.initialized = False

	@property
	def switch_pending(self) -> bool:
		return self.context.switch_lock.locked()

	async def initialize(self, owner_label: Optional[str]) -> Optional[Session]:
		"""Resume the persisted session or create a new one for `owner_label`.

		Subsequent calls return the active session while it still exists; a
		session deleted in the meantime is dropped and a new one created.
		"""
		if self.initialized and self.context.session_id:
			active_id = self.context.session_id
			session = await self.sessions.get_session(active_id)
			if session is not None:
				return session
			LOGGER.info("Active session %s no longer exists, starting over", active_id)
			await self.forget_session(active_id)

		async with self.context.switch_lock:
			session = await self.resolve_session()
			if session is None and owner_label:
				session = await self._create(owner_label)
			self.initialized = session is not None
			return session

	async def resolve_session(self) -> Optional[Session]:
		"""Return the persisted session if it still exists in the store.

		A missing, deleted or unreadable session clears the persisted id and
		returns None so the caller falls through to creation.
		"""
		try:
			stored_id = await self.context.load_persisted_id()
		except Exception:
			LOGGER.exception("Failed to read the persisted session id")
			return None
		if not stored_id:
			return None

		try:
			session = await self.sessions.get_session(stored_id)
		except Exception:
			LOGGER.exception("Failed to validate stored session %s", stored_id)
			session = None

		if session is None:
			LOGGER.info("Stored session %s is invalid, clearing it", stored_id)
			try:
				await self.context.clear_persisted_id()
			except Exception:
				LOGGER.exception("Failed to clear the persisted session id")
			return None

		transcript = await self.load_transcript(session.id)
		await self.context.set_active(session.id, transcript)
		LOGGER.info("Resumed session %s with %d messages", session.id, len(transcript))
		return session

	async def create_session(self, owner_label: str) -> Optional[Session]:
		"""Insert a new session for `owner_label` and make it active.

		The caller decides whether a new session is wanted; no check is made
		for an existing valid session.
		"""
		if self.switch_pending:
			raise SessionSwitchInProgressError("A session switch is already in progress.")
		async with self.context.switch_lock:
			session = await self._create(owner_label)
			if session is not None:
				self.initialized = True
			return session

	async def _create(self, owner_label: str) -> Optional[Session]:
		self.initialization_error = None
		try:
			session = await self.sessions.create_session(company_name=owner_label, facilitator=FACILITATOR)
			await self.context.set_active(session.id, [])
		except Exception:
			LOGGER.exception("Failed to create a session for %s", owner_label)
			self.initialization_error = "Failed to create new session"
			return None
		LOGGER.info("Created session %s for %s", session.id, owner_label)
		return session

	async def load_transcript(self, session_id: str) -> List[TranscriptMessage]:
		"""Return the session's messages oldest first.

		An empty list is a valid result for a new session. Read failures set
		`initialization_error` and also return an empty list.
		"""
		self.initialization_error = None
		try:
			rows = await self.messages.list_messages(session_id)
		except Exception:
			LOGGER.exception("Failed to load messages for session %s", session_id)
			self.initialization_error = "Failed to load messages"
			return []
		LOGGER.info("Loaded %d messages for session %s", len(rows), session_id)
		return [TranscriptMessage.from_row(row) for row in rows]

	async def switch_session(self, session_id: str) -> Session:
		"""Make a session from history the active one.

		Raises:
			SessionSwitchInProgressError: If another switch has not finished.
			SessionNotFoundError: If the session no longer exists.
		"""
		if self.switch_pending:
			raise SessionSwitchInProgressError("A session switch is already in progress.")
		async with self.context.switch_lock:
			session = await self.sessions.get_session(session_id)
			if session is None:
				raise SessionNotFoundError(session_id)
			transcript = await self.load_transcript(session_id)
			await self.context.set_active(session_id, transcript)
			self.initialized = True
			return session

	async def forget_session(self, session_id: str) -> None:
		"""Drop the active pointer when `session_id` was deleted elsewhere."""
		if self.context.is_active(session_id):
			await self.context.set_active(None)
			self.initialized = False

	def apply_turn(self, result: TurnResult) -> bool:
		"""Apply a finished turn to the live transcript unless it is stale."""
		if not self.context.replace_transcript(result.session_id, result.transcript):
			result.stale = True
			LOGGER.info("Discarding stale turn for inactive session %s", result.session_id)
			return False
		return True

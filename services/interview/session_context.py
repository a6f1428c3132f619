"""Process-wide holder of the active session and its transcript."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from dal.client_state_dal import ClientStateDAL
from models.session_models import TranscriptMessage

LOGGER = logging.getLogger(__name__)

ACTIVE_SESSION_KEY = "workflowSleuthSessionId"

SessionListener = Callable[[Optional[str], Optional[str]], Optional[Awaitable[None]]]


class SessionContext:
	"""Active-session pointer with a single setter and change notification.

	Created once at application start and handed to every component that
	needs the active session. The identifier is persisted under
	ACTIVE_SESSION_KEY so it survives restarts.
	"""

	def __init__(self, state_dal: ClientStateDAL) -> None:
		self._state = state_dal
		self._session_id: Optional[str] = None
		self._transcript: List[TranscriptMessage] = []
		self._listeners: List[SessionListener] = []
		self.switch_lock = asyncio.Lock()

	@property
	def session_id(self) -> Optional[str]:
		return self._session_id

	@property
	def transcript(self) -> List[TranscriptMessage]:
		"""Return a copy of the live transcript."""
		return list(self._transcript)

	def is_active(self, session_id: Optional[str]) -> bool:
		return session_id is not None and session_id == self._session_id

	def add_listener(self, listener: SessionListener) -> None:
		"""Register a callback invoked with (previous_id, new_id) on change."""
		self._listeners.append(listener)

	async def load_persisted_id(self) -> Optional[str]:
		"""Return the identifier stored by a previous run, if any."""
		return await self._state.get_value(ACTIVE_SESSION_KEY)

	async def clear_persisted_id(self) -> None:
		await self._state.delete_value(ACTIVE_SESSION_KEY)

	async def set_active(
		self,
		session_id: Optional[str],
		transcript: Optional[List[TranscriptMessage]] = None,
	) -> None:
		"""Switch the active session, persist it, and notify listeners."""
		previous = self._session_id
		if session_id is None:
			await self._state.delete_value(ACTIVE_SESSION_KEY)
		else:
			await self._state.set_value(ACTIVE_SESSION_KEY, session_id)
		self._session_id = session_id
		self._transcript = list(transcript or [])
		if previous != session_id:
			await self._notify(previous, session_id)

	def replace_transcript(self, session_id: str, transcript: List[TranscriptMessage]) -> bool:
		"""Replace the live transcript if `session_id` is still active."""
		if not self.is_active(session_id):
			return False
		self._transcript = list(transcript)
		return True

	async def _notify(self, previous: Optional[str], current: Optional[str]) -> None:
		for listener in list(self._listeners):
			try:
				result = listener(previous, current)
				if asyncio.iscoroutine(result):
					await result
			except Exception:
				LOGGER.exception("Session change listener failed")

"""Name a session once enough of the interview has happened."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Set

from dal.session_dal import SessionDAL
from models.session_models import TranscriptMessage
from services.interview.title_events import TitleUpdateBroadcaster
from services.openai.completion_client import CompletionClient

LOGGER = logging.getLogger(__name__)

MIN_TRANSCRIPT_LENGTH = 3
MAX_USER_MESSAGES = 5
MAX_TITLE_LENGTH = 30

TITLE_SYSTEM_PROMPT = (
	"You are an assistant that generates concise titles based on user messages. "
	"Focus on the main topic or workflow being discussed."
)


def title_user_prompt(user_messages: Sequence[str]) -> str:
	"""Return the prompt listing the user messages to summarise."""
	joined = "\n".join(user_messages)
	return (
		f"Generate a concise, descriptive title (max {MAX_TITLE_LENGTH} characters) based on the context "
		"of these user messages. Focus on identifying the key workflow, process, or topic being discussed. "
		"Reply with the title only.\n\n"
		f"User Messages:\n{joined}"
	)


def clean_title(raw: str) -> str:
	"""Strip whitespace and wrapping quotes from a generated title."""
	lines = (raw or "").strip().splitlines()
	if not lines:
		return ""
	return lines[0].strip().strip("\"'` ").strip()


class SessionTitleDeriver:
	"""Request one title per session per process lifetime.

	The latch is taken before any await, so a second call for the same
	session never issues another model request. Titles may be derived
	again after a restart; the new value simply overwrites the old one.
	"""

	def __init__(
		self,
		completion_client: CompletionClient,
		session_dal: SessionDAL,
		broadcaster: Optional[TitleUpdateBroadcaster] = None,
		model: Optional[str] = None,
	) -> None:
		self.completions = completion_client
		self.sessions = session_dal
		self.broadcaster = broadcaster
		self.model = model
		self._latched: Set[str] = set()
		self._tasks: Set[asyncio.Task] = set()

	def has_derived(self, session_id: str) -> bool:
		return session_id in self._latched

	def maybe_derive(self, session_id: str, transcript: Sequence[TranscriptMessage]) -> Optional[asyncio.Task]:
		"""Schedule title derivation when the session qualifies.

		Returns:
			The background task, or None when nothing was scheduled.
		"""
		if not session_id or session_id in self._latched:
			return None
		if len(transcript) < MIN_TRANSCRIPT_LENGTH:
			return None
		user_messages = [m.text for m in transcript if not m.is_bot][:MAX_USER_MESSAGES]
		if not user_messages:
			return None

		self._latched.add(session_id)
		task = asyncio.create_task(self.derive(session_id, user_messages))
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)
		return task

	async def derive(self, session_id: str, user_messages: List[str]) -> Optional[str]:
		"""Ask the model for a title and store it. Errors are logged, not raised."""
		try:
			completion = await self.completions.complete(
				[
					{"role": "system", "content": TITLE_SYSTEM_PROMPT},
					{"role": "user", "content": title_user_prompt(user_messages)},
				],
				model=self.model,
				temperature=0.3,
				max_output_tokens=30,
			)
			title = clean_title(completion.content or "")
			if not title:
				LOGGER.warning("Empty title generated for session %s", session_id)
				return None
			updated = await self.sessions.update_title(session_id, title)
		except Exception:
			LOGGER.exception("Failed to derive a title for session %s", session_id)
			return None

		if not updated:
			LOGGER.warning("Session %s disappeared before its title was stored", session_id)
			return None
		LOGGER.info("Session %s titled %r", session_id, title)
		if self.broadcaster is not None:
			self.broadcaster.publish(session_id, title)
		return title

"""One turn of the discovery interview: user text in, assistant reply out."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Dict, List, Optional

from dal.message_dal import MessageDAL
from dal.workflow_dal import WorkflowDAL
from models.session_models import (
	ASSISTANT_ROLE,
	USER_ROLE,
	InterviewState,
	TranscriptMessage,
	TurnResult,
)
from models.workflow_record import WorkflowRecord
from services.interview import prompts
from services.interview.protocol import derive_state, describe_state, next_state
from services.interview.session_context import SessionContext
from services.interview.workflow_schema import (
	FUNCTION_DEFINITION,
	FUNCTION_NAME,
	build_workflow_record,
	validate_workflow_arguments,
)
from services.openai.completion_client import CompletionClient
from services.openai.response_parser import Completion

LOGGER = logging.getLogger(__name__)


class MessageExchange:
	"""Run the per-turn protocol step against the model and the record store.

	Writes for one session are serialised so the user message, the model
	call and the assistant message always happen in that order, and only
	one opening message can ever be stored.
	"""

	def __init__(
		self,
		completion_client: CompletionClient,
		message_dal: MessageDAL,
		workflow_dal: WorkflowDAL,
		context: Optional[SessionContext] = None,
		workflow_count_threshold: int = 10,
	) -> None:
		self.completions = completion_client
		self.messages = message_dal
		self.workflows = workflow_dal
		self.context = context
		self.workflow_count_threshold = workflow_count_threshold
		self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

	async def send_turn(
		self,
		session_id: str,
		user_text: str,
		prior_transcript: Optional[List[TranscriptMessage]] = None,
	) -> TurnResult:
		"""Process one user utterance and return the updated transcript.

		The history sent to the model is read once the session's lock is
		held: the live transcript when the session is active, otherwise
		`prior_transcript` or, when that is None, the stored messages. The
		live transcript is replaced before the lock is released.

		Model and persistence failures never propagate: they become an
		apology reply or a warning on the result.

		Raises:
			ValueError: If `session_id` or `user_text` is empty.
		"""
		if not session_id:
			raise ValueError("Session id is required.")
		text = (user_text or "").strip()
		if not text:
			raise ValueError("Message text is required.")

		async with self._locks[session_id]:
			warnings: List[str] = []
			if self.context is not None and self.context.is_active(session_id):
				transcript = self.context.transcript
			else:
				transcript = list(prior_transcript or [])
			if not transcript:
				transcript = await self._start_transcript(session_id, warnings)

			state = derive_state(transcript)
			user_message = await self._persist(session_id, USER_ROLE, text, warnings)
			transcript.append(user_message)

			workflow: Optional[WorkflowRecord] = None
			workflow_count: Optional[int] = None
			try:
				completion = await self.completions.complete(
					self._model_transcript(transcript, state),
					[FUNCTION_DEFINITION],
				)
				if completion.function_call is not None:
					reply, state, workflow, workflow_count = await self._handle_function_call(
						session_id, completion, state, warnings
					)
				else:
					reply = (completion.content or "").strip()
					state = next_state(state, text, reply)
			except Exception as exc:
				LOGGER.error("Model call failed for session %s: %s", session_id, exc)
				reply = prompts.APOLOGY_REPLY
				self._warn(warnings, prompts.MODEL_ERROR_WARNING)

			assistant_message = await self._persist(session_id, ASSISTANT_ROLE, reply, warnings)
			transcript.append(assistant_message)

			stale = self.context is not None and not self.context.replace_transcript(session_id, transcript)

		return TurnResult(
			session_id=session_id,
			transcript=transcript,
			reply=reply,
			state=state,
			workflow=workflow,
			workflow_count=workflow_count,
			warnings=warnings,
			stale=stale,
		)

	async def _start_transcript(self, session_id: str, warnings: List[str]) -> List[TranscriptMessage]:
		"""Store the opening message for an empty session, or load what exists."""
		try:
			opening = await self.messages.create_message_if_empty(
				session_id, ASSISTANT_ROLE, prompts.OPENING_MESSAGE
			)
		except Exception:
			LOGGER.exception("Failed to store the opening message for session %s", session_id)
			self._warn(warnings, prompts.UNSAVED_WARNING)
			return [TranscriptMessage(text=prompts.OPENING_MESSAGE, is_bot=True, session_id=session_id)]

		if opening is not None:
			LOGGER.info("Sent opening message for empty session %s", session_id)
			return [TranscriptMessage.from_row(opening)]

		# The caller's transcript was empty but the store is not.
		try:
			rows = await self.messages.list_messages(session_id)
		except Exception:
			LOGGER.exception("Failed to reload messages for session %s", session_id)
			self._warn(warnings, prompts.LOAD_FAILED_WARNING)
			return []
		return [TranscriptMessage.from_row(row) for row in rows]

	def forget_session(self, session_id: str) -> bool:
		"""Drop the per-session lock of a deleted session.

		Returns False when no lock was held for `session_id` or a turn is
		still running under it.
		"""
		lock = self._locks.get(session_id)
		if lock is None or lock.locked():
			return False
		del self._locks[session_id]
		return True

	async def _handle_function_call(
		self,
		session_id: str,
		completion: Completion,
		state: InterviewState,
		warnings: List[str],
	):
		function_call = completion.function_call
		if function_call.name != FUNCTION_NAME:
			raise ValueError(f"Unexpected function call '{function_call.name}'.")

		args = function_call.arguments()
		problems = validate_workflow_arguments(args)
		if problems:
			LOGGER.warning("Invalid workflow data for session %s, missing %s", session_id, problems)
			return prompts.CLARIFY_REPLY, InterviewState.AWAITING_CONFIRMATION, None, None

		record = build_workflow_record(session_id, args)
		try:
			workflow = await self.workflows.create_workflow(record)
		except Exception:
			LOGGER.exception("Failed to insert workflow '%s' for session %s", record.title, session_id)
			self._warn(warnings, prompts.WORKFLOW_SAVE_WARNING)
			return prompts.SAVE_FAILED_REPLY, InterviewState.AWAITING_CONFIRMATION, None, None

		LOGGER.info("Added workflow %s (%s) to session %s", workflow.id, workflow.title, session_id)
		workflow_count: Optional[int] = None
		try:
			workflow_count = await self.workflows.count_workflows(session_id)
		except Exception:
			LOGGER.exception("Failed to count workflows for session %s", session_id)

		reply = prompts.confirmation_reply(workflow.title, workflow_count, self.workflow_count_threshold)
		return reply, InterviewState.SAVED, workflow, workflow_count

	@staticmethod
	def _model_transcript(transcript: List[TranscriptMessage], state: InterviewState) -> List[Dict[str, str]]:
		entries = [
			{"role": "system", "content": prompts.system_instruction()},
			{"role": "system", "content": f"Interview progress: {describe_state(state)}"},
		]
		entries.extend({"role": message.role, "content": message.text} for message in transcript)
		return entries

	async def _persist(
		self,
		session_id: str,
		role: str,
		content: str,
		warnings: List[str],
	) -> TranscriptMessage:
		"""Store a message; on failure keep the unsaved copy and warn."""
		try:
			row = await self.messages.create_message(session_id, role, content)
		except Exception:
			LOGGER.exception("Failed to save %s message for session %s", role, session_id)
			self._warn(warnings, prompts.UNSAVED_WARNING)
			return TranscriptMessage(text=content, is_bot=role == ASSISTANT_ROLE, session_id=session_id)
		return TranscriptMessage.from_row(row)

	@staticmethod
	def _warn(warnings: List[str], message: str) -> None:
		if message not in warnings:
			warnings.append(message)

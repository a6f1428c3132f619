"""Session lifecycle helpers for the discovery interview."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request

from dal.message_dal import MessageDAL
from dal.session_dal import SessionDAL
from dal.workflow_dal import WorkflowDAL
from models.session_models import Session, TranscriptMessage
from services.interview.errors import SessionNotFoundError, SessionSwitchInProgressError
from services.interview.exchange import MessageExchange
from services.interview.session_manager import SessionManager
from utils.database_cleaner import SessionCleaner

LOGGER = logging.getLogger(__name__)


def session_payload(session: Optional[Session]) -> Optional[Dict[str, Any]]:
	return asdict(session) if session is not None else None


def transcript_payload(transcript: List[TranscriptMessage]) -> List[Dict[str, Any]]:
	return [asdict(message) for message in transcript]


async def _require_session(request: Request, session_id: str) -> Session:
	sessions: SessionDAL = request.app.state.session_dal
	session = await sessions.get_session(session_id)
	if session is None:
		raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
	return session


async def initialize_session(request: Request, company_name: Optional[str]) -> Dict[str, Any]:
	"""Resume the persisted session or create one for `company_name`."""
	manager: SessionManager = request.app.state.session_manager
	session = await manager.initialize(company_name)
	transcript = manager.context.transcript if session is not None else []
	return {
		"session": session_payload(session),
		"transcript": transcript_payload(transcript),
		"error": manager.initialization_error,
	}


async def create_session(request: Request, company_name: str) -> Dict[str, Any]:
	"""Start a new chat and make it the active session."""
	manager: SessionManager = request.app.state.session_manager
	try:
		session = await manager.create_session(company_name)
	except SessionSwitchInProgressError as exc:
		raise HTTPException(status_code=409, detail=str(exc)) from exc
	if session is None:
		raise HTTPException(status_code=500, detail=manager.initialization_error or "Failed to create new session")
	return {"session": session_payload(session), "transcript": []}


async def list_history(request: Request) -> Dict[str, Any]:
	"""Return sessions that have messages, newest first, after pruning empty ones."""
	cleaner: SessionCleaner = request.app.state.session_cleaner
	try:
		await cleaner.prune_empty_sessions()
	except Exception:
		LOGGER.exception("Empty session cleanup failed")

	sessions: SessionDAL = request.app.state.session_dal
	manager: SessionManager = request.app.state.session_manager
	history = await sessions.list_sessions_with_messages()
	return {
		"sessions": [session_payload(s) for s in history],
		"active_session_id": manager.context.session_id,
	}


async def activate_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Switch the active session to one picked from history."""
	manager: SessionManager = request.app.state.session_manager
	try:
		session = await manager.switch_session(session_id)
	except SessionSwitchInProgressError as exc:
		raise HTTPException(status_code=409, detail=str(exc)) from exc
	except SessionNotFoundError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return {
		"session": session_payload(session),
		"transcript": transcript_payload(manager.context.transcript),
		"error": manager.initialization_error,
	}


async def get_messages(request: Request, session_id: str) -> Dict[str, Any]:
	await _require_session(request, session_id)
	messages: MessageDAL = request.app.state.message_dal
	rows = await messages.list_messages(session_id)
	return {
		"session_id": session_id,
		"transcript": transcript_payload([TranscriptMessage.from_row(row) for row in rows]),
	}


async def delete_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Delete a session with its messages, workflows and suggestions."""
	sessions: SessionDAL = request.app.state.session_dal
	if not await sessions.delete_session(session_id):
		raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
	manager: SessionManager = request.app.state.session_manager
	await manager.forget_session(session_id)
	exchange: MessageExchange = request.app.state.message_exchange
	exchange.forget_session(session_id)
	LOGGER.info("Deleted session %s", session_id)
	return {"session_id": session_id, "deleted": True}


async def list_session_workflows(request: Request, session_id: str) -> Dict[str, Any]:
	await _require_session(request, session_id)
	workflows: WorkflowDAL = request.app.state.workflow_dal
	records = await workflows.list_workflows(session_id)
	return {"session_id": session_id, "workflows": [record.as_dict() for record in records]}

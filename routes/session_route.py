"""FastAPI routes for interview sessions and their history."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.session_controller import (
	activate_session,
	create_session,
	delete_session,
	get_messages,
	initialize_session,
	list_history,
	list_session_workflows,
)

router = APIRouter(prefix="/sessions", tags=["sessions"])


class InitPayload(BaseModel):
	company_name: Optional[str] = None


class CreatePayload(BaseModel):
	company_name: str


@router.post("/init")
async def initialize_session_route(request: Request, payload: InitPayload):
	try:
		return await initialize_session(request, payload.company_name)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("")
async def create_session_route(request: Request, payload: CreatePayload):
	try:
		return await create_session(request, payload.company_name)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("")
async def list_history_route(request: Request):
	try:
		return await list_history(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/activate")
async def activate_session_route(request: Request, session_id: str):
	try:
		return await activate_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}/messages")
async def get_messages_route(request: Request, session_id: str):
	try:
		return await get_messages(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{session_id}")
async def delete_session_route(request: Request, session_id: str):
	try:
		return await delete_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}/workflows")
async def list_workflows_route(request: Request, session_id: str):
	try:
		return await list_session_workflows(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))

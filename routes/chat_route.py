"""FastAPI route for interview turns."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.chat_controller import send_turn

router = APIRouter(prefix="/chat", tags=["chat"])


class TurnPayload(BaseModel):
    text: str


@router.post("/{session_id}/turns")
async def send_turn_route(request: Request, session_id: str, payload: TurnPayload):
    """Send one user message and return the assistant reply.

    Model and storage failures do not fail the request; they surface as an
    apology reply and entries in `warnings`.
    """
    try:
        return await send_turn(request, session_id, payload.text)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))

from typing import Any, Dict

from fastapi import HTTPException, Request

from controllers.session_controller import transcript_payload
from dal.session_dal import SessionDAL
from services.interview.exchange import MessageExchange
from services.interview.session_manager import SessionManager
from services.interview.title_deriver import SessionTitleDeriver


async def send_turn(request: Request, session_id: str, text: str) -> Dict[str, Any]:
    """Run one interview exchange for `session_id`.

    The live transcript is updated only when the session is still the
    active one once the reply arrives; otherwise the result is flagged
    `stale`. Title derivation is scheduled in the background.

    Args:
        request: FastAPI Request (used to access shared services/state).
        session_id: Session receiving the message.
        text: User-authored message.

    Returns:
        A dict with the reply, the full transcript, the saved workflow (if
        any), the interview state and any persistence warnings.

    Raises:
        HTTPException(404) if the session does not exist.
        HTTPException(400) if the message is empty.
    """
    sessions: SessionDAL = request.app.state.session_dal
    if await sessions.get_session(session_id) is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")

    exchange: MessageExchange = request.app.state.message_exchange
    try:
        result = await exchange.send_turn(session_id, text)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    manager: SessionManager = request.app.state.session_manager
    if manager.apply_turn(result):
        deriver: SessionTitleDeriver = request.app.state.title_deriver
        deriver.maybe_derive(session_id, result.transcript)

    return {
        "session_id": result.session_id,
        "reply": result.reply,
        "transcript": transcript_payload(result.transcript),
        "workflow": result.workflow.as_dict() if result.workflow is not None else None,
        "workflow_count": result.workflow_count,
        "state": result.state.value,
        "warnings": list(result.warnings),
        "stale": result.stale,
    }

"""WebSocket endpoint streaming session title updates."""

from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from starlette.websockets import WebSocketDisconnect

from services.interview.title_events import TitleUpdateBroadcaster

router = APIRouter()


def _require_broadcaster(websocket: WebSocket) -> TitleUpdateBroadcaster:
	broadcaster = getattr(websocket.app.state, "title_broadcaster", None)
	if broadcaster is None:
		raise HTTPException(status_code=500, detail="Title broadcaster unavailable")
	return broadcaster


async def _drain_client(websocket: WebSocket) -> None:
	"""Consume client frames until the socket closes; only "ping" is answered."""
	while True:
		try:
			raw = await websocket.receive_text()
		except WebSocketDisconnect:
			return
		if raw.strip() == "ping":
			await websocket.send_text(json.dumps({"type": "pong"}))


async def _forward_events(websocket: WebSocket, queue: asyncio.Queue) -> None:
	while True:
		event = await queue.get()
		await websocket.send_text(json.dumps(event))


@router.websocket("/ws/sessions")
async def session_events_socket(
	websocket: WebSocket,
	broadcaster: TitleUpdateBroadcaster = Depends(_require_broadcaster),
):
	"""Push `session.title` events to the client as titles are derived."""
	await websocket.accept()
	async with broadcaster.subscribe() as queue:
		receiver = asyncio.create_task(_drain_client(websocket))
		sender = asyncio.create_task(_forward_events(websocket, queue))
		done, pending = await asyncio.wait({receiver, sender}, return_when=asyncio.FIRST_COMPLETED)
		for task in pending:
			task.cancel()
		await asyncio.gather(*pending, return_exceptions=True)
		for task in done:
			exc = task.exception()
			if exc is not None and not isinstance(exc, WebSocketDisconnect):
				raise exc

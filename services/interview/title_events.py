"""In-process change feed for session title updates."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Set

LOGGER = logging.getLogger(__name__)


class TitleUpdateBroadcaster:
	"""Fan out `{session_id, title}` events to subscribed queues."""

	def __init__(self, max_queue_size: int = 100) -> None:
		self._subscribers: Set[asyncio.Queue] = set()
		self._max_queue_size = max_queue_size

	@property
	def subscriber_count(self) -> int:
		return len(self._subscribers)

	@asynccontextmanager
	async def subscribe(self) -> AsyncIterator[asyncio.Queue]:
		"""Yield a queue receiving every title update until the context exits."""
		queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
		self._subscribers.add(queue)
		try:
			yield queue
		finally:
			self._subscribers.discard(queue)

	def publish(self, session_id: str, title: str) -> None:
		"""Deliver a title update to every subscriber without blocking."""
		event: Dict[str, str] = {"type": "session.title", "session_id": session_id, "title": title}
		for queue in list(self._subscribers):
			try:
				queue.put_nowait(event)
			except asyncio.QueueFull:
				LOGGER.warning("Dropping title update for slow subscriber (session %s)", session_id)

"""
Live sessions keyed by id, each with its own asyncio.Lock.

Handlers hold a session's lock for the whole of a mutating operation, so two
mutations never interleave on one session. Long waits (pose detection) happen
outside the lock; their results are applied through `is_current()` checks so a
completion for a discarded session or a replaced image is dropped.
"""
from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional

from tryon.session import OverlaySession

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
	pass


class SessionRegistry:
	def __init__(self, factory: Callable[[], OverlaySession], max_sessions: int = 100) -> None:
		self._factory = factory
		self._max = max(1, int(max_sessions))
		self._sessions: "OrderedDict[str, OverlaySession]" = OrderedDict()
		self._locks: Dict[str, asyncio.Lock] = {}

	def __len__(self) -> int:
		return len(self._sessions)

	def __contains__(self, session_id: object) -> bool:
		return session_id in self._sessions

	def create(self) -> OverlaySession:
		s = self._factory()
		self._sessions[s.session_id] = s
		self._locks[s.session_id] = asyncio.Lock()
		while len(self._sessions) > self._max:
			old_id, _ = self._sessions.popitem(last=False)
			self._locks.pop(old_id, None)
			logger.info("[Session] evicted %s (limit %d)", old_id, self._max)
		return s

	def get(self, session_id: str) -> OverlaySession:
		s = self._sessions.get(session_id)
		if s is None:
			raise SessionNotFound(session_id)
		self._sessions.move_to_end(session_id)
		return s

	def discard(self, session_id: str) -> bool:
		self._locks.pop(session_id, None)
		return self._sessions.pop(session_id, None) is not None

	def is_current(self, session: OverlaySession, image_id: Optional[str] = None) -> bool:
		"""True if `session` is still registered and (if given) still shows `image_id`."""
		if self._sessions.get(session.session_id) is not session:
			return False
		if image_id is None:
			return True
		return session.base_image is not None and session.base_image.image_id == image_id

	@asynccontextmanager
	async def locked(self, session_id: str) -> AsyncIterator[OverlaySession]:
		lock = self._locks.get(session_id)
		if lock is None:
			raise SessionNotFound(session_id)
		async with lock:
			# Re-check: the session may have been discarded while we waited.
			yield self.get(session_id)

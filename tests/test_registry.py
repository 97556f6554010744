import asyncio

import pytest

from tryon.registry import SessionNotFound, SessionRegistry
from tryon.session import OverlaySession


def test_create_get_discard():
	reg = SessionRegistry(OverlaySession)
	s = reg.create()
	assert s.session_id in reg and len(reg) == 1
	assert reg.get(s.session_id) is s
	assert reg.discard(s.session_id)
	assert not reg.discard(s.session_id)
	with pytest.raises(SessionNotFound):
		reg.get(s.session_id)


def test_least_recently_used_session_is_evicted():
	reg = SessionRegistry(OverlaySession, max_sessions=2)
	a, b = reg.create(), reg.create()
	reg.get(a.session_id)
	c = reg.create()
	assert b.session_id not in reg
	assert a.session_id in reg and c.session_id in reg


def test_is_current_tracks_session_and_image():
	reg = SessionRegistry(OverlaySession)
	s = reg.create()
	image_id = s.load_image("/uploads/a.png", (10, 10)).image_id
	assert reg.is_current(s, image_id)
	s.load_image("/uploads/b.png", (10, 10))
	assert not reg.is_current(s, image_id)
	assert reg.is_current(s)
	reg.discard(s.session_id)
	assert not reg.is_current(s)


def test_locked_serialises_and_rechecks():
	reg = SessionRegistry(OverlaySession)
	s = reg.create()
	order = []

	async def op(tag, discard=False):
		async with reg.locked(s.session_id):
			order.append(tag + ":in")
			await asyncio.sleep(0)
			if discard:
				reg.discard(s.session_id)
			order.append(tag + ":out")

	async def main():
		results = await asyncio.gather(op("a", discard=True), op("b"), return_exceptions=True)
		return results

	results = asyncio.run(main())
	assert order == ["a:in", "a:out"]
	assert isinstance(results[1], SessionNotFound)


def test_locked_unknown_session():
	async def main():
		async with SessionRegistry(OverlaySession).locked("missing"):
			pass

	with pytest.raises(SessionNotFound):
		asyncio.run(main())

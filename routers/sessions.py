"""Editing session routes. Routes: /api/sessions (upload), /api/sessions/{id}[/image|/keypoints|/clothing|/clothing/reset|/mode|/transform|/background|/export|/reset]."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from app_state import AppState
from deps import get_state
from schemas.requests import (
	BackgroundPayload,
	ClothingPayload,
	KeypointsPayload,
	ModePayload,
	TransformDeltaPayload,
)
from schemas.responses import DeltaResponse, ExportResponse, SessionView
from tryon import db
from tryon.errors import (
	AssetUnavailable,
	InvalidBackground,
	InvalidImage,
	NoImageLoaded,
	NothingToExport,
	TryOnError,
	UploadTooLarge,
)
from tryon.image_store import StoredImage
from tryon.pose.runner import detect_image
from tryon.pose.types import PoseKeypoints
from tryon.registry import SessionNotFound
from tryon.render import to_data_uri
from tryon.session import OverlaySession, TransformDelta

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions"])

_STATUS = {
	AssetUnavailable: 404,
	InvalidBackground: 422,
	NothingToExport: 409,
	NoImageLoaded: 409,
	InvalidImage: 400,
	UploadTooLarge: 413,
}


def _http_error(e: TryOnError) -> HTTPException:
	for cls, code in _STATUS.items():
		if isinstance(e, cls):
			return HTTPException(status_code=code, detail=str(e))
	return HTTPException(status_code=400, detail=str(e))


@asynccontextmanager
async def _editing(state: AppState, session_id: str) -> AsyncIterator[OverlaySession]:
	"""Hold the session's lock for one operation and map domain errors to HTTP."""
	try:
		async with state.sessions.locked(session_id) as s:
			yield s
	except SessionNotFound:
		raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
	except TryOnError as e:
		raise _http_error(e) from e


def _view(s: OverlaySession) -> SessionView:
	return SessionView.model_validate(s.snapshot())


async def _read_upload(image: UploadFile, limit: int) -> bytes:
	data = await image.read(limit + 1)
	if len(data) > limit:
		raise UploadTooLarge(len(data), limit)
	return data


async def _detect(state: AppState, stored: StoredImage) -> Optional[PoseKeypoints]:
	im = await asyncio.to_thread(state.store.open, stored.url)
	try:
		return await asyncio.to_thread(detect_image, state.pose, im)
	finally:
		im.close()


async def _load_image(
	state: AppState,
	session_id: str,
	image: UploadFile,
	viewport_width: Optional[int],
	detect: bool,
) -> SessionView:
	"""
	Store the upload, load it into the session, then run pose detection outside the
	session lock. The result is applied only if the session still shows this image.
	"""
	try:
		data = await _read_upload(image, state.store.max_bytes)
		stored = await asyncio.to_thread(state.store.store, data)
	except TryOnError as e:
		raise _http_error(e) from e

	async with _editing(state, session_id) as s:
		image_id = s.load_image(stored.url, (stored.width, stored.height), viewport_width=viewport_width).image_id

	try:
		upload_id = await db.record_upload(session_id, stored.url)
	except Exception as e:
		logger.warning("[DB] record_upload failed: %r", e)
		upload_id = None
	if upload_id is not None:
		async with _editing(state, session_id) as s:
			if state.sessions.is_current(s, image_id):
				s.upload_id = upload_id

	if not detect:
		async with _editing(state, session_id) as s:
			return _view(s)

	keypoints = await _detect(state, stored)
	async with _editing(state, session_id) as s:
		if state.sessions.is_current(s, image_id):
			s.set_keypoints(keypoints, image_id=image_id)
		else:
			logger.info("[Session] %s: image replaced during detection; result dropped", session_id)
		return _view(s)


@router.post("/api/sessions", response_model=SessionView)
async def create_session(
	image: UploadFile = File(...),
	viewport_width: Optional[int] = Form(None),
	detect: bool = Form(True),
	state: AppState = Depends(get_state),
):
	"""Upload a photo and open an editing session on it. Pose is detected server-side unless detect=false."""
	s = state.sessions.create()
	try:
		return await _load_image(state, s.session_id, image, viewport_width, detect)
	except Exception:
		state.sessions.discard(s.session_id)
		raise


@router.get("/api/sessions/{session_id}", response_model=SessionView)
async def get_session(session_id: str, state: AppState = Depends(get_state)):
	async with _editing(state, session_id) as s:
		return _view(s)


@router.post("/api/sessions/{session_id}/image", response_model=SessionView)
async def replace_image(
	session_id: str,
	image: UploadFile = File(...),
	viewport_width: Optional[int] = Form(None),
	detect: bool = Form(True),
	state: AppState = Depends(get_state),
):
	"""Load a new photo into an existing session. Clothing and keypoints are cleared."""
	if session_id not in state.sessions:
		raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
	return await _load_image(state, session_id, image, viewport_width, detect)


@router.post("/api/sessions/{session_id}/keypoints", response_model=SessionView)
async def set_keypoints(session_id: str, payload: KeypointsPayload, state: AppState = Depends(get_state)):
	"""Supply keypoints detected client-side. Ignored if keypoints are already set for the image."""
	async with _editing(state, session_id) as s:
		if s.base_image is None:
			raise NoImageLoaded("Please upload an image first.")
		kps = PoseKeypoints.from_named(
			[p.model_dump() for p in payload.keypoints],
			backend="client",
			width=s.base_image.intrinsic_width,
			height=s.base_image.intrinsic_height,
		)
		s.set_keypoints(kps, image_id=payload.image_id)
		return _view(s)


@router.post("/api/sessions/{session_id}/clothing", response_model=SessionView)
async def select_clothing(session_id: str, payload: ClothingPayload, state: AppState = Depends(get_state)):
	"""Place a clothing item using the detected pose. Replaces any current item."""
	async with _editing(state, session_id) as s:
		if s.pose_pending:
			raise HTTPException(status_code=409, detail="Pose detection still running for this image")
		s.select_clothing(payload.kind, state.catalog)
		return _view(s)


@router.post("/api/sessions/{session_id}/clothing/reset", response_model=SessionView)
async def reset_clothing_position(session_id: str, state: AppState = Depends(get_state)):
	"""Drop user edits and recompute the initial placement of the current item."""
	async with _editing(state, session_id) as s:
		s.reset_clothing_position()
		return _view(s)


@router.post("/api/sessions/{session_id}/mode", response_model=SessionView)
async def set_mode(session_id: str, payload: ModePayload, state: AppState = Depends(get_state)):
	async with _editing(state, session_id) as s:
		s.set_interaction_mode(payload.mode)
		return _view(s)


@router.post("/api/sessions/{session_id}/transform", response_model=DeltaResponse)
async def apply_transform(session_id: str, payload: TransformDeltaPayload, state: AppState = Depends(get_state)):
	"""Apply one drag/resize/rotate gesture. Fields locked by the current mode come back in `rejected`."""
	async with _editing(state, session_id) as s:
		if s.clothing is None:
			raise HTTPException(status_code=409, detail="No clothing item selected")
		res = s.apply_user_transform_delta(TransformDelta(**payload.model_dump()))
		return DeltaResponse(applied=list(res.applied), rejected=list(res.rejected), session=_view(s))


@router.post("/api/sessions/{session_id}/background", response_model=SessionView)
async def set_background(session_id: str, payload: BackgroundPayload, state: AppState = Depends(get_state)):
	async with _editing(state, session_id) as s:
		s.set_background(payload.kind, payload.color)
		return _view(s)


@router.get("/api/sessions/{session_id}/export")
async def export_session(
	session_id: str,
	format: str = "png",
	save: bool = False,
	state: AppState = Depends(get_state),
):
	"""Flatten background, photo and clothing into one PNG (raw bytes or a data URI)."""
	fmt = (format or "png").strip().lower()
	if fmt not in ("png", "datauri"):
		raise HTTPException(status_code=400, detail="format must be 'png' or 'datauri'")
	async with _editing(state, session_id) as s:
		png = await asyncio.to_thread(s.export_flattened, state.surface)
		kind = s.clothing.kind.value if s.clothing is not None else None
		upload_id = s.upload_id

	url = None
	if save:
		stored = await asyncio.to_thread(state.store.store_png, png)
		url = stored.url
		if upload_id is not None:
			try:
				await db.record_export(upload_id, url, kind)
			except Exception as e:
				logger.warning("[DB] record_export failed: %r", e)

	if fmt == "datauri":
		return ExportResponse(data_uri=to_data_uri(png), url=url)
	headers = {"Cache-Control": "no-store", "Content-Disposition": 'attachment; filename="tryon.png"'}
	if url:
		headers["Location"] = url
	return Response(content=png, media_type="image/png", headers=headers)


@router.post("/api/sessions/{session_id}/reset", response_model=SessionView)
async def reset_session(session_id: str, state: AppState = Depends(get_state)):
	"""Return the session to its empty state (no image)."""
	async with _editing(state, session_id) as s:
		s.reset()
		return _view(s)


@router.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str, state: AppState = Depends(get_state)):
	if not state.sessions.discard(session_id):
		raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
	return {"detail": "Session discarded", "session_id": session_id}

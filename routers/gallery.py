"""Gallery and upload history API. Routes: /api/gallery, /api/uploads."""
from fastapi import APIRouter, HTTPException

from schemas.requests import GalleryItemPayload
from tryon import db

router = APIRouter(tags=["gallery"])


@router.get("/api/gallery")
async def list_gallery():
	"""Gallery items ordered for display."""
	try:
		return {"items": await db.list_gallery_items()}
	except Exception as e:
		raise HTTPException(status_code=500, detail=f"Failed to fetch gallery items: {e!r}")


@router.post("/api/gallery")
async def create_gallery_item(payload: GalleryItemPayload):
	"""Add a gallery item (requires database.url)."""
	if db.get_pool() is None:
		raise HTTPException(status_code=503, detail="Database not configured")
	try:
		return await db.create_gallery_item(payload.image_url, payload.clothing_type, payload.display_order)
	except Exception as e:
		raise HTTPException(status_code=500, detail=f"Failed to create gallery item: {e!r}")


@router.get("/api/uploads")
async def list_uploads(limit: int = 50):
	"""Most recent uploads and their exports (empty when persistence is disabled)."""
	try:
		return {"uploads": await db.list_uploads(limit=limit)}
	except Exception as e:
		raise HTTPException(status_code=500, detail=f"Failed to fetch upload history: {e!r}")

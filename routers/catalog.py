"""Clothing catalog and sample routes. Routes: /api/clothing, /api/clothing/{kind}, /api/samples/{name}."""
import asyncio

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from app_state import AppState
from deps import get_state
from tryon.errors import AssetUnavailable
from tryon.samples import sample_path

router = APIRouter(tags=["catalog"])


@router.get("/api/clothing")
async def list_clothing(state: AppState = Depends(get_state)):
	"""List the clothing items that can be placed."""
	try:
		items = await asyncio.to_thread(state.catalog.items)
	except AssetUnavailable as e:
		raise HTTPException(status_code=500, detail=str(e))
	return {"items": [a.to_dict() for a in items]}


@router.get("/api/clothing/{kind}")
async def clothing_image(kind: str, state: AppState = Depends(get_state)):
	"""Return the PNG artwork for a clothing item."""
	try:
		asset = await asyncio.to_thread(state.catalog.resolve, kind)
	except AssetUnavailable:
		raise HTTPException(status_code=404, detail="Clothing type not found")
	return FileResponse(state.catalog.path_for(asset.kind), media_type="image/png")


@router.get("/api/samples/{name}")
async def sample_image(name: str, state: AppState = Depends(get_state)):
	"""Return a sample photo (placeholder art until a real one is dropped in assets/samples)."""
	try:
		p = await asyncio.to_thread(sample_path, state.catalog.assets_dir / "samples", name)
	except FileNotFoundError:
		raise HTTPException(status_code=404, detail=f"Sample {name} not found")
	return FileResponse(p, media_type="image/jpeg")

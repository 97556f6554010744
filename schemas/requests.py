"""Pydantic request body models for the editing endpoints."""
from typing import List, Optional

from pydantic import BaseModel, Field

from tryon.session import InteractionMode


class ClothingPayload(BaseModel):
	"""Request body for POST /api/sessions/{id}/clothing."""

	kind: str = Field(..., description="'jacket', 'hoodie' or 'cap'")


class ModePayload(BaseModel):
	"""Request body for POST /api/sessions/{id}/mode."""

	mode: InteractionMode = Field(..., description="'locked', 'move' or 'resize'")


class TransformDeltaPayload(BaseModel):
	"""
	Request body for POST /api/sessions/{id}/transform. One drag/resize/rotate gesture.
	Offsets for left/top/rotation, multiplicative factors for scale_x/scale_y.
	"""

	left: Optional[float] = Field(None, description="Horizontal offset in display pixels")
	top: Optional[float] = Field(None, description="Vertical offset in display pixels")
	scale_x: Optional[float] = Field(None, description="Horizontal scale factor, e.g. 1.1")
	scale_y: Optional[float] = Field(None, description="Vertical scale factor, e.g. 1.1")
	rotation: Optional[float] = Field(None, description="Rotation offset in degrees (clockwise)")


class BackgroundPayload(BaseModel):
	"""Request body for POST /api/sessions/{id}/background."""

	kind: str = Field(..., description="'transparent', 'solid' or 'custom'")
	color: Optional[str] = Field(None, description="CSS color; required for 'custom'")


class KeypointIn(BaseModel):
	name: str
	x: float
	y: float
	score: Optional[float] = None


class KeypointsPayload(BaseModel):
	"""Request body for POST /api/sessions/{id}/keypoints (client-side pose detection)."""

	keypoints: List[KeypointIn] = Field(default_factory=list, description="Named points in original image pixels")
	image_id: Optional[str] = Field(None, description="Image the keypoints were detected on")


class GalleryItemPayload(BaseModel):
	"""Request body for POST /api/gallery."""

	image_url: str = Field(..., min_length=1)
	clothing_type: str = Field(..., min_length=1)
	display_order: int = 0

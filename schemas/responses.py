"""Pydantic response models for API docs and validation of session views."""
from typing import List, Optional

from pydantic import BaseModel


class TransformModel(BaseModel):
	scale_x: float
	scale_y: float
	left: float
	top: float
	rotation: float = 0.0


class CanvasModel(BaseModel):
	width: int
	height: int


class BaseImageModel(BaseModel):
	source_ref: str
	width: int
	height: int
	image_id: str
	display_transform: TransformModel


class KeypointModel(BaseModel):
	name: str
	x: float
	y: float
	score: float


class AssetModel(BaseModel):
	id: str
	name: str
	description: str
	width: int
	height: int
	image_url: str


class ClothingModel(BaseModel):
	kind: str
	asset: AssetModel
	transform: TransformModel


class BackgroundModel(BaseModel):
	kind: str
	color: Optional[str] = None


class SessionView(BaseModel):
	"""Full state of one editing session."""

	session_id: str
	state: str
	pose_pending: bool
	canvas: CanvasModel
	base_image: Optional[BaseImageModel] = None
	keypoints: Optional[List[KeypointModel]] = None
	clothing: Optional[ClothingModel] = None
	interaction_mode: str
	capabilities: List[str]
	background: BackgroundModel


class DeltaResponse(BaseModel):
	"""Response from POST /api/sessions/{id}/transform."""

	applied: List[str]
	rejected: List[str]
	session: SessionView


class ExportResponse(BaseModel):
	"""Response from GET /api/sessions/{id}/export?format=datauri."""

	data_uri: str
	url: Optional[str] = None

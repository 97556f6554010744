"""Pydantic request/response models for API validation and docs."""
from schemas.requests import (
	BackgroundPayload,
	ClothingPayload,
	GalleryItemPayload,
	KeypointsPayload,
	ModePayload,
	TransformDeltaPayload,
)
from schemas.responses import DeltaResponse, ExportResponse, SessionView

__all__ = [
	"BackgroundPayload",
	"ClothingPayload",
	"GalleryItemPayload",
	"KeypointsPayload",
	"ModePayload",
	"TransformDeltaPayload",
	"DeltaResponse",
	"ExportResponse",
	"SessionView",
]

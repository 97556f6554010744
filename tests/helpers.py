"""Shared test data, fake collaborators and image builders."""
import io
from typing import Dict, Optional

from PIL import Image

from tryon.catalog import ClothingAsset, parse_kind
from tryon.pose.base import PoseProvider
from tryon.pose.types import PoseKeypoints

# Torso fixture: shoulders 100 px apart, hips 200 px below.
JACKET_POINTS = [
	{"name": "left_shoulder", "x": 100, "y": 200, "score": 0.9},
	{"name": "right_shoulder", "x": 200, "y": 200, "score": 0.9},
	{"name": "left_hip", "x": 110, "y": 400, "score": 0.9},
	{"name": "right_hip", "x": 190, "y": 400, "score": 0.9},
]

FACE_POINTS = [
	{"name": "nose", "x": 200, "y": 100, "score": 0.9},
	{"name": "left_eye", "x": 180, "y": 90, "score": 0.9},
	{"name": "right_eye", "x": 220, "y": 95, "score": 0.9},
]


def png_bytes(size=(700, 500), color=(200, 30, 30, 255)) -> bytes:
	buf = io.BytesIO()
	Image.new("RGBA", size, color).save(buf, format="PNG")
	return buf.getvalue()


def make_asset(kind="jacket", width=300, height=300) -> ClothingAsset:
	k = parse_kind(kind)
	return ClothingAsset(kind=k, intrinsic_width=width, intrinsic_height=height, source_ref=f"/api/clothing/{k.value}")


class StubCatalog:
	def __init__(self, sizes: Optional[Dict[str, tuple]] = None) -> None:
		sizes = sizes or {"jacket": (300, 300), "hoodie": (300, 300), "cap": (300, 200)}
		self.assets = {parse_kind(k): make_asset(k, w, h) for k, (w, h) in sizes.items()}

	def resolve(self, kind):
		k = parse_kind(kind)
		return self.assets[k]


class FakePoseProvider(PoseProvider):
	def __init__(self, points=None) -> None:
		self.points = points
		self.calls = 0
		self.closed = False

	def name(self) -> str:
		return "fake"

	def detect_rgb(self, rgb):
		self.calls += 1
		if self.points is None:
			return None
		return PoseKeypoints.from_named(self.points, backend="fake", width=rgb.shape[1], height=rgb.shape[0])

	def close(self) -> None:
		self.closed = True

"""
Render/export surface: flattens a declarative Scene into PNG bytes with Pillow.

Layers are composited in list order over the background fill, so the session
decides z-order (background < base image < clothing) and this module only draws.
"""
from __future__ import annotations

import base64
import io
import math
from dataclasses import dataclass, field
from typing import Callable, List, Tuple

from PIL import Image

from tryon.geometry import Transform2D, placed_center

RGBA = Tuple[int, int, int, int]


@dataclass(frozen=True)
class Layer:
	source_ref: str
	intrinsic_width: int
	intrinsic_height: int
	transform: Transform2D


@dataclass(frozen=True)
class Scene:
	width: int
	height: int
	background: RGBA = (0, 0, 0, 0)
	layers: List[Layer] = field(default_factory=list)


def place_layer(canvas: Image.Image, src: Image.Image, t: Transform2D) -> None:
	"""
	Scale `src` by the transform, rotate it about its top-left pivot, and
	alpha-composite it onto `canvas` in place.
	"""
	w = max(1, int(round(src.width * t.scale_x)))
	h = max(1, int(round(src.height * t.scale_y)))
	layer = src.convert("RGBA")
	if layer.size != (w, h):
		layer = layer.resize((w, h), Image.Resampling.LANCZOS)

	if t.rotation % 360.0:
		# PIL rotates counter-clockwise about the centre; the expanded image keeps
		# that centre, so paste it where the pivoted centre ends up.
		cx, cy = placed_center(t, src.width, src.height)
		layer = layer.rotate(-t.rotation, resample=Image.Resampling.BICUBIC, expand=True)
		x = cx - layer.width / 2.0
		y = cy - layer.height / 2.0
	else:
		x, y = t.left, t.top

	ix, iy = int(math.floor(x + 0.5)), int(math.floor(y + 0.5))
	# alpha_composite needs the source box inside the canvas; crop what overhangs.
	sx0, sy0 = max(0, -ix), max(0, -iy)
	sx1 = min(layer.width, canvas.width - ix)
	sy1 = min(layer.height, canvas.height - iy)
	if sx0 >= sx1 or sy0 >= sy1:
		return
	canvas.alpha_composite(layer, dest=(ix + sx0, iy + sy0), source=(sx0, sy0, sx1, sy1))


class PillowSurface:
	"""
	Flattens scenes; `loader` maps a layer's source_ref to decoded pixels.
	"""

	def __init__(self, loader: Callable[[str], Image.Image]) -> None:
		self._loader = loader

	def compose(self, scene: Scene) -> Image.Image:
		canvas = Image.new("RGBA", (max(1, int(scene.width)), max(1, int(scene.height))), tuple(scene.background))
		for layer in scene.layers:
			src = self._loader(layer.source_ref)
			try:
				place_layer(canvas, src, layer.transform)
			finally:
				src.close()
		return canvas

	def flatten(self, scene: Scene) -> bytes:
		buf = io.BytesIO()
		self.compose(scene).save(buf, format="PNG")
		return buf.getvalue()


def to_data_uri(png: bytes) -> str:
	return "data:image/png;base64," + base64.b64encode(png).decode("ascii")

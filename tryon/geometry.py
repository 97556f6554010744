from __future__ import annotations

import math
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class Transform2D:
	"""
	Placement of an asset of known intrinsic size in display (canvas) space.

	- `left`/`top` is where the asset's top-left corner lands.
	- `rotation` is in degrees, clockwise on screen, pivoting on that corner.
	"""

	scale_x: float
	scale_y: float
	left: float
	top: float
	rotation: float = 0.0

	def scaled_size(self, width: float, height: float) -> Tuple[float, float]:
		return float(width) * self.scale_x, float(height) * self.scale_y

	def with_changes(self, **changes: float) -> "Transform2D":
		return replace(self, **changes)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)


IDENTITY = Transform2D(scale_x=1.0, scale_y=1.0, left=0.0, top=0.0)


def is_positive_finite(v: float) -> bool:
	return isinstance(v, (int, float)) and math.isfinite(v) and v > 0.0


def fit_to_box(img_w: int, img_h: int, box_w: int, box_h: int) -> Transform2D:
	"""
	Uniform scale that fits (img_w, img_h) inside the box, centred.
	"""
	img_w = max(1, int(img_w))
	img_h = max(1, int(img_h))
	scale = min(float(box_w) / img_w, float(box_h) / img_h)
	return Transform2D(
		scale_x=scale,
		scale_y=scale,
		left=(float(box_w) - img_w * scale) / 2.0,
		top=(float(box_h) - img_h * scale) / 2.0,
	)


def to_display(base: Transform2D, x: float, y: float) -> Tuple[float, float]:
	"""Map a point from original-image pixel space into display space."""
	return base.left + float(x) * base.scale_x, base.top + float(y) * base.scale_y


def rotate_point(x: float, y: float, degrees: float) -> Tuple[float, float]:
	# y axis points down, so a positive angle turns clockwise on screen.
	rad = math.radians(degrees)
	c, s = math.cos(rad), math.sin(rad)
	return x * c - y * s, x * s + y * c


def placed_corners(t: Transform2D, width: float, height: float) -> List[Tuple[float, float]]:
	"""Display-space corners of a placed asset: top-left, top-right, bottom-right, bottom-left."""
	w, h = t.scaled_size(width, height)
	out = []
	for cx, cy in ((0.0, 0.0), (w, 0.0), (w, h), (0.0, h)):
		rx, ry = rotate_point(cx, cy, t.rotation)
		out.append((t.left + rx, t.top + ry))
	return out


def placed_center(t: Transform2D, width: float, height: float) -> Tuple[float, float]:
	w, h = t.scaled_size(width, height)
	rx, ry = rotate_point(w / 2.0, h / 2.0, t.rotation)
	return t.left + rx, t.top + ry

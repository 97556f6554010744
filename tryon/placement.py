"""
Keypoint-guided initial placement of a clothing asset.

compute_initial_placement() is pure and never raises: whenever the keypoints it
needs are missing (or give a degenerate size) it returns the fallback placement,
so a freshly selected garment is always visible and editable.

All arithmetic happens in display space. Keypoints arrive in original-image
pixels and are mapped through the base image's display transform first.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from tryon.catalog import ClothingAsset, ClothingKind
from tryon.geometry import Transform2D, is_positive_finite, to_display
from tryon.pose.types import KeypointName, PoseKeypoints

logger = logging.getLogger(__name__)

# Fallback: half natural size, 25% right / 15% down from the image's top-left.
FALLBACK_SCALE = 0.5
FALLBACK_LEFT_FRAC = 0.25
FALLBACK_TOP_FRAC = 0.15

# Torso rule (jacket, hoodie)
TORSO_WIDTH_FACTOR = 1.3
TORSO_HEIGHT_FACTOR = 1.2
TORSO_TOP_LIFT = 0.2  # fraction of scaled asset height above the shoulder line

# Head rule (cap)
HEAD_EYE_SPAN_FACTOR = 2.5
HEAD_MIN_WIDTH_FRAC = 0.2  # of displayed base image width
HEAD_TOP_LIFT = 0.7  # fraction of scaled asset height above the eye line

TORSO_POINTS = (
	KeypointName.LEFT_SHOULDER,
	KeypointName.RIGHT_SHOULDER,
	KeypointName.LEFT_HIP,
	KeypointName.RIGHT_HIP,
)
HEAD_POINTS = (
	KeypointName.NOSE,
	KeypointName.LEFT_EYE,
	KeypointName.RIGHT_EYE,
)


@dataclass(frozen=True)
class BaseImageGeometry:
	"""Displayed size and offset of the base image."""

	left: float
	top: float
	width: float
	height: float

	@classmethod
	def from_transform(cls, display: Transform2D, intrinsic_w: int, intrinsic_h: int) -> "BaseImageGeometry":
		w, h = display.scaled_size(intrinsic_w, intrinsic_h)
		return cls(left=display.left, top=display.top, width=w, height=h)


def _display_points(
	keypoints: Optional[PoseKeypoints],
	names: Tuple[KeypointName, ...],
	base: Transform2D,
	min_score: float,
) -> Optional[list[Tuple[float, float]]]:
	if keypoints is None or not len(keypoints):
		return None
	found = keypoints.require(*names, min_score=min_score)
	if found is None:
		return None
	return [to_display(base, kp.x_px, kp.y_px) for kp in found]


def fallback_placement(geom: BaseImageGeometry) -> Transform2D:
	return Transform2D(
		scale_x=FALLBACK_SCALE,
		scale_y=FALLBACK_SCALE,
		left=geom.left + geom.width * FALLBACK_LEFT_FRAC,
		top=geom.top + geom.height * FALLBACK_TOP_FRAC,
	)


def torso_placement(
	asset: ClothingAsset,
	points: list[Tuple[float, float]],
) -> Optional[Transform2D]:
	"""
	Cover-fit the garment to the shoulder/hip box. The larger of the two axis
	scales wins, so one axis may overflow rather than the garment looking small.
	"""
	(lsx, lsy), (rsx, rsy), (_lhx, lhy), (_rhx, rhy) = points
	torso_w = abs(lsx - rsx) * TORSO_WIDTH_FACTOR
	torso_h = max(abs(lsy - lhy), abs(rsy - rhy)) * TORSO_HEIGHT_FACTOR
	scale = max(torso_w / asset.intrinsic_width, torso_h / asset.intrinsic_height)
	if not is_positive_finite(scale):
		return None
	mid_x = (lsx + rsx) / 2.0
	mid_y = (lsy + rsy) / 2.0
	return Transform2D(
		scale_x=scale,
		scale_y=scale,
		left=mid_x - asset.intrinsic_width * scale / 2.0,
		top=mid_y - asset.intrinsic_height * scale * TORSO_TOP_LIFT,
	)


def head_placement(
	asset: ClothingAsset,
	points: list[Tuple[float, float]],
	geom: BaseImageGeometry,
) -> Optional[Transform2D]:
	"""
	Size the cap from the eye span, floored at a fraction of the image width so a
	small or partly hidden face still gets a usable cap.
	"""
	(nose_x, _nose_y), (lex, ley), (rex, rey) = points
	head_w = max(abs(lex - rex) * HEAD_EYE_SPAN_FACTOR, geom.width * HEAD_MIN_WIDTH_FRAC)
	scale = head_w / asset.intrinsic_width
	if not is_positive_finite(scale):
		return None
	return Transform2D(
		scale_x=scale,
		scale_y=scale,
		left=nose_x - asset.intrinsic_width * scale / 2.0,
		top=min(ley, rey) - asset.intrinsic_height * scale * HEAD_TOP_LIFT,
	)


def compute_initial_placement(
	kind: ClothingKind,
	keypoints: Optional[PoseKeypoints],
	asset: ClothingAsset,
	base_display: Transform2D,
	base_size: Tuple[int, int],
	min_score: float = 0.0,
) -> Transform2D:
	"""
	Initial transform for `asset` over a base image of intrinsic `base_size`
	displayed through `base_display`.

	Jacket and hoodie follow the torso rule (both shoulders and both hips
	required), cap follows the head rule (nose and both eyes required). Anything
	else, including absent keypoints, gets the fallback placement. Rotation is
	always 0.
	"""
	geom = BaseImageGeometry.from_transform(base_display, base_size[0], base_size[1])
	placed: Optional[Transform2D] = None
	if asset.intrinsic_width > 0 and asset.intrinsic_height > 0:
		if kind.is_torso:
			pts = _display_points(keypoints, TORSO_POINTS, base_display, min_score)
			if pts is not None:
				placed = torso_placement(asset, pts)
		elif kind == ClothingKind.CAP:
			pts = _display_points(keypoints, HEAD_POINTS, base_display, min_score)
			if pts is not None:
				placed = head_placement(asset, pts, geom)

	if placed is None or not (math.isfinite(placed.left) and math.isfinite(placed.top)):
		logger.debug("[Placement] %s: using fallback placement", kind.value)
		return fallback_placement(geom)
	return placed

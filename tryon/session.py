"""
Overlay session state machine.

One OverlaySession is one upload-to-export editing context. Every mutation of
the base image, keypoints, clothing transform, interaction mode or background
goes through the methods below; a failed operation raises before touching any
state.

States: no_image -> image_loaded -> clothing_placed (re-selecting clothing stays
in clothing_placed). The interaction mode only matters while clothing is placed.
"""
from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Protocol, Tuple

from PIL import ImageColor

from tryon.catalog import ClothingAsset, ClothingKind, parse_kind
from tryon.errors import InvalidBackground, NoImageLoaded, NothingToExport
from tryon.geometry import Transform2D, fit_to_box
from tryon.placement import compute_initial_placement
from tryon.pose.types import PoseKeypoints
from tryon.render import Layer, Scene

logger = logging.getLogger(__name__)

BRAND_PINK = "#FF36C7"


class SessionState(str, Enum):
	NO_IMAGE = "no_image"
	IMAGE_LOADED = "image_loaded"
	CLOTHING_PLACED = "clothing_placed"


class InteractionMode(str, Enum):
	LOCKED = "locked"
	MOVE = "move"
	RESIZE = "resize"


POSITION_FIELDS = frozenset({"left", "top"})
ALL_FIELDS = frozenset({"left", "top", "scale_x", "scale_y", "rotation"})

# Which transform fields a user gesture may change in each mode. LOCKED is the
# mode right after placement and applies no locks; MOVE freezes scale and rotation.
MODE_CAPABILITIES: Dict[InteractionMode, FrozenSet[str]] = {
	InteractionMode.LOCKED: ALL_FIELDS,
	InteractionMode.MOVE: POSITION_FIELDS,
	InteractionMode.RESIZE: ALL_FIELDS,
}


class BackgroundKind(str, Enum):
	TRANSPARENT = "transparent"
	SOLID = "solid"
	CUSTOM = "custom"


@dataclass(frozen=True)
class Background:
	kind: BackgroundKind = BackgroundKind.TRANSPARENT
	color: Optional[str] = None

	def rgba(self) -> Tuple[int, int, int, int]:
		if self.kind == BackgroundKind.TRANSPARENT or not self.color:
			return (0, 0, 0, 0)
		rgb = ImageColor.getrgb(self.color)
		if len(rgb) == 4:
			return tuple(rgb)  # type: ignore[return-value]
		return (rgb[0], rgb[1], rgb[2], 255)


def parse_background(kind: Any, color: Optional[str] = None) -> Background:
	try:
		k = BackgroundKind(str(kind).strip().lower())
	except ValueError:
		raise InvalidBackground(f"Unknown background kind: {kind!r}") from None
	if k == BackgroundKind.TRANSPARENT:
		return Background(kind=k)
	c = (color or "").strip()
	if not c:
		if k == BackgroundKind.CUSTOM:
			raise InvalidBackground("Custom background requires a color")
		c = BRAND_PINK
	try:
		ImageColor.getrgb(c)
	except ValueError:
		raise InvalidBackground(f"Not a valid color: {c!r}") from None
	return Background(kind=k, color=c)


@dataclass(frozen=True)
class BaseImage:
	source_ref: str
	intrinsic_width: int
	intrinsic_height: int
	display_transform: Transform2D
	image_id: str


@dataclass
class PlacedClothing:
	asset: ClothingAsset
	transform: Transform2D

	@property
	def kind(self) -> ClothingKind:
		return self.asset.kind


@dataclass(frozen=True)
class TransformDelta:
	"""
	A user gesture. left/top/rotation are offsets added to the current value;
	scale_x/scale_y are factors multiplied into it. None means "unchanged".
	"""

	left: Optional[float] = None
	top: Optional[float] = None
	scale_x: Optional[float] = None
	scale_y: Optional[float] = None
	rotation: Optional[float] = None

	def present(self) -> Dict[str, float]:
		return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(frozen=True)
class DeltaResult:
	transform: Optional[Transform2D]
	applied: Tuple[str, ...] = ()
	rejected: Tuple[str, ...] = ()


class AssetResolver(Protocol):
	def resolve(self, kind: Any) -> ClothingAsset: ...


class RenderSurface(Protocol):
	def flatten(self, scene: Scene) -> bytes: ...


@dataclass
class OverlaySession:
	"""
	Mutable aggregate root of one editing session.

	`canvas_max_width`/`canvas_height` define the display box images are fitted
	into; `min_keypoint_score` is passed through to placement.
	"""

	session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
	canvas_max_width: int = 700
	canvas_height: int = 500
	min_keypoint_score: float = 0.0

	base_image: Optional[BaseImage] = None
	canvas_size: Tuple[int, int] = (0, 0)
	keypoints: Optional[PoseKeypoints] = None
	keypoints_resolved: bool = False
	clothing: Optional[PlacedClothing] = None
	interaction_mode: InteractionMode = InteractionMode.LOCKED
	background: Background = field(default_factory=Background)
	# Upload history row for the current image (None when persistence is disabled)
	upload_id: Optional[int] = None

	@property
	def state(self) -> SessionState:
		if self.base_image is None:
			return SessionState.NO_IMAGE
		if self.clothing is None:
			return SessionState.IMAGE_LOADED
		return SessionState.CLOTHING_PLACED

	@property
	def pose_pending(self) -> bool:
		return self.base_image is not None and not self.keypoints_resolved

	def load_image(self, source_ref: str, intrinsic_size: Tuple[int, int], viewport_width: Optional[int] = None) -> BaseImage:
		img_w, img_h = int(intrinsic_size[0]), int(intrinsic_size[1])
		if img_w <= 0 or img_h <= 0:
			raise ValueError(f"Image size must be positive, got {img_w}x{img_h}")
		box_w = int(self.canvas_max_width)
		if viewport_width is not None and int(viewport_width) > 0:
			box_w = min(int(viewport_width), box_w)
		box_h = int(self.canvas_height)

		self.base_image = BaseImage(
			source_ref=source_ref,
			intrinsic_width=img_w,
			intrinsic_height=img_h,
			display_transform=fit_to_box(img_w, img_h, box_w, box_h),
			image_id=uuid.uuid4().hex,
		)
		self.canvas_size = (box_w, box_h)
		self.keypoints = None
		self.upload_id = None
		self.keypoints_resolved = False
		self.clothing = None
		self.interaction_mode = InteractionMode.LOCKED
		logger.debug("[Session] %s: loaded %s (%dx%d) into %dx%d", self.session_id, source_ref, img_w, img_h, box_w, box_h)
		return self.base_image

	def set_keypoints(self, keypoints: Optional[PoseKeypoints], image_id: Optional[str] = None) -> bool:
		"""
		Store the detection result for the current image. Returns False (and changes
		nothing) if no image is loaded, the result belongs to a replaced image, or a
		result was already stored for this image.
		"""
		if self.base_image is None:
			return False
		if image_id is not None and image_id != self.base_image.image_id:
			logger.debug("[Session] %s: ignoring stale keypoints for image %s", self.session_id, image_id)
			return False
		if self.keypoints_resolved:
			return False
		self.keypoints = keypoints if keypoints is not None and len(keypoints) else None
		self.keypoints_resolved = True
		return True

	def _place(self, asset: ClothingAsset) -> Transform2D:
		base = self.base_image
		assert base is not None
		return compute_initial_placement(
			asset.kind,
			self.keypoints,
			asset,
			base.display_transform,
			(base.intrinsic_width, base.intrinsic_height),
			min_score=self.min_keypoint_score,
		)

	def select_clothing(self, kind: Any, catalog: AssetResolver) -> PlacedClothing:
		if self.base_image is None:
			raise NoImageLoaded("Please upload an image first.")
		asset = catalog.resolve(parse_kind(kind))
		self.clothing = PlacedClothing(asset=asset, transform=self._place(asset))
		self.interaction_mode = InteractionMode.LOCKED
		return self.clothing

	def set_interaction_mode(self, mode: Any) -> bool:
		m = InteractionMode(mode)
		if self.clothing is None:
			return False
		self.interaction_mode = m
		return True

	def capabilities(self) -> FrozenSet[str]:
		if self.clothing is None:
			return frozenset()
		return MODE_CAPABILITIES[self.interaction_mode]

	def apply_user_transform_delta(self, delta: TransformDelta) -> DeltaResult:
		"""
		Merge a gesture into the clothing transform. Fields the current mode does not
		allow, and non-positive or non-finite values, are rejected and reported back
		rather than coerced.
		"""
		if self.clothing is None:
			return DeltaResult(transform=None, rejected=tuple(sorted(delta.present())))
		allowed = self.capabilities()
		cur = self.clothing.transform
		changes: Dict[str, float] = {}
		applied, rejected = [], []
		for name, value in sorted(delta.present().items()):
			v = float(value)
			if name not in allowed or not math.isfinite(v):
				rejected.append(name)
				continue
			if name in ("scale_x", "scale_y"):
				new = getattr(cur, name) * v
				if v <= 0.0 or not math.isfinite(new) or new <= 0.0:
					rejected.append(name)
					continue
			else:
				new = getattr(cur, name) + v
			changes[name] = new
			applied.append(name)
		if changes:
			self.clothing.transform = cur.with_changes(**changes)
		if rejected:
			logger.debug("[Session] %s: rejected %s in %s mode", self.session_id, rejected, self.interaction_mode.value)
		return DeltaResult(transform=self.clothing.transform, applied=tuple(applied), rejected=tuple(rejected))

	def reset_clothing_position(self) -> Optional[PlacedClothing]:
		"""Recompute the initial placement for the active clothing, dropping user edits."""
		if self.clothing is None or self.base_image is None:
			return None
		asset = self.clothing.asset
		self.clothing = PlacedClothing(asset=asset, transform=self._place(asset))
		self.interaction_mode = InteractionMode.LOCKED
		return self.clothing

	def set_background(self, kind: Any, color: Optional[str] = None) -> Background:
		self.background = parse_background(kind, color)
		return self.background

	def build_scene(self) -> Scene:
		base = self.base_image
		if base is None:
			raise NothingToExport("Please upload an image first.")
		layers = [Layer(base.source_ref, base.intrinsic_width, base.intrinsic_height, base.display_transform)]
		if self.clothing is not None:
			a = self.clothing.asset
			layers.append(Layer(a.source_ref, a.intrinsic_width, a.intrinsic_height, self.clothing.transform))
		w, h = self.canvas_size
		return Scene(width=w, height=h, background=self.background.rgba(), layers=layers)

	def export_flattened(self, surface: RenderSurface) -> bytes:
		return surface.flatten(self.build_scene())

	def reset(self) -> None:
		self.base_image = None
		self.canvas_size = (0, 0)
		self.keypoints = None
		self.keypoints_resolved = False
		self.clothing = None
		self.interaction_mode = InteractionMode.LOCKED
		self.background = Background()
		self.upload_id = None

	def snapshot(self) -> Dict[str, Any]:
		base = self.base_image
		cl = self.clothing
		return {
			"session_id": self.session_id,
			"state": self.state.value,
			"pose_pending": self.pose_pending,
			"canvas": {"width": self.canvas_size[0], "height": self.canvas_size[1]},
			"base_image": None if base is None else {
				"source_ref": base.source_ref,
				"width": base.intrinsic_width,
				"height": base.intrinsic_height,
				"image_id": base.image_id,
				"display_transform": base.display_transform.to_dict(),
			},
			"keypoints": None if self.keypoints is None else self.keypoints.to_list(),
			"clothing": None if cl is None else {
				"kind": cl.kind.value,
				"asset": cl.asset.to_dict(),
				"transform": cl.transform.to_dict(),
			},
			"interaction_mode": self.interaction_mode.value,
			"capabilities": sorted(self.capabilities()),
			"background": {"kind": self.background.kind.value, "color": self.background.color},
		}

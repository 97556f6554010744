"""
Clothing asset catalog: the fixed universe {jacket, hoodie, cap}.

Each kind resolves to a PNG under the assets directory. A missing file is drawn
as placeholder art on first use so the service works out of the box.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from PIL import Image, ImageDraw

from tryon.errors import AssetUnavailable

logger = logging.getLogger(__name__)

ASSET_URL_PREFIX = "/api/clothing/"

PINK = (255, 54, 199, 255)
DARK = (18, 18, 18, 255)
OUTLINE = (51, 51, 51, 255)
WHITE = (255, 255, 255, 255)


class ClothingKind(str, Enum):
	JACKET = "jacket"
	HOODIE = "hoodie"
	CAP = "cap"

	@property
	def is_torso(self) -> bool:
		return self in (ClothingKind.JACKET, ClothingKind.HOODIE)


@dataclass(frozen=True)
class ClothingAsset:
	kind: ClothingKind
	intrinsic_width: int
	intrinsic_height: int
	source_ref: str
	name: str = ""
	description: str = ""

	def to_dict(self) -> Dict[str, Any]:
		return {
			"id": self.kind.value,
			"name": self.name,
			"description": self.description,
			"width": self.intrinsic_width,
			"height": self.intrinsic_height,
			"image_url": self.source_ref,
		}


# kind -> (display name, description, placeholder size)
CLOTHING_ITEMS: Dict[ClothingKind, tuple[str, str, tuple[int, int]]] = {
	ClothingKind.JACKET: ("SUCCINCT Jacket", "Pink & Black", (300, 300)),
	ClothingKind.HOODIE: ("GPROVE Hoodie", "Pink", (300, 300)),
	ClothingKind.CAP: ("Logo Cap", "Pink & White", (300, 200)),
}


def parse_kind(kind: Any) -> ClothingKind:
	if isinstance(kind, ClothingKind):
		return kind
	try:
		return ClothingKind(str(kind).strip().lower())
	except ValueError:
		raise AssetUnavailable(kind) from None


def _draw_jacket(size: tuple[int, int]) -> Image.Image:
	im = Image.new("RGBA", size, (0, 0, 0, 0))
	d = ImageDraw.Draw(im)
	body = [(75, 50), (225, 50), (240, 100), (240, 230), (150, 250), (60, 230), (60, 100)]
	d.polygon(body, fill=DARK, outline=OUTLINE)
	d.polygon([(75, 50), (225, 50), (240, 100), (240, 120), (60, 120), (60, 100)], fill=PINK, outline=OUTLINE)
	d.polygon([(60, 210), (240, 210), (240, 230), (150, 250), (60, 230)], fill=PINK, outline=OUTLINE)
	d.polygon([(100, 50), (90, 100), (80, 50)], fill=DARK)
	d.polygon([(200, 50), (210, 100), (220, 50)], fill=DARK)
	d.text((150, 70), "SUCCINCT", fill=WHITE, anchor="mm")
	return im


def _draw_hoodie(size: tuple[int, int]) -> Image.Image:
	im = Image.new("RGBA", size, (0, 0, 0, 0))
	d = ImageDraw.Draw(im)
	d.rectangle([60, 80, 240, 250], fill=PINK, outline=OUTLINE, width=2)
	d.chord([60, 30, 240, 130], start=180, end=360, fill=PINK, outline=OUTLINE)
	d.rectangle([90, 130, 210, 170], fill=PINK, outline=OUTLINE, width=2)
	d.rounded_rectangle([110, 90, 150, 110], radius=5, fill=WHITE, outline=OUTLINE)
	d.text((130, 100), "GPROVE", fill=OUTLINE, anchor="mm")
	d.line([(90, 210), (115, 210), (115, 190), (185, 190), (185, 210), (210, 210)], fill=OUTLINE, width=2)
	return im


def _draw_cap(size: tuple[int, int]) -> Image.Image:
	im = Image.new("RGBA", size, (0, 0, 0, 0))
	d = ImageDraw.Draw(im)
	d.chord([50, 20, 250, 180], start=180, end=360, fill=WHITE, outline=OUTLINE)
	d.chord([50, 60, 250, 180], start=0, end=180, fill=PINK, outline=OUTLINE)
	d.polygon([(125, 55), (115, 70), (125, 85), (135, 70)], fill=PINK)
	d.text((150, 105), "S", fill=WHITE, anchor="mm")
	return im


_PLACEHOLDERS = {
	ClothingKind.JACKET: _draw_jacket,
	ClothingKind.HOODIE: _draw_hoodie,
	ClothingKind.CAP: _draw_cap,
}


class AssetCatalog:
	"""
	Resolves clothing kinds to immutable ClothingAsset records.

	Resolution reads the PNG header for the intrinsic size; the result is cached
	per kind for the lifetime of the catalog.
	"""

	def __init__(self, assets_dir: str | Path) -> None:
		self._dir = Path(assets_dir)
		self._lock = threading.Lock()
		self._cache: Dict[ClothingKind, ClothingAsset] = {}

	@property
	def assets_dir(self) -> Path:
		return self._dir

	def path_for(self, kind: Any) -> Path:
		return self._dir / f"{parse_kind(kind).value}.png"

	def _ensure_file(self, kind: ClothingKind) -> Path:
		p = self._dir / f"{kind.value}.png"
		if p.exists():
			return p
		try:
			self._dir.mkdir(parents=True, exist_ok=True)
			_PLACEHOLDERS[kind](CLOTHING_ITEMS[kind][2]).save(p, format="PNG")
			logger.info("[Catalog] generated placeholder asset %s", p)
		except OSError as e:
			raise AssetUnavailable(kind) from e
		return p

	def resolve(self, kind: Any) -> ClothingAsset:
		k = parse_kind(kind)
		with self._lock:
			cached = self._cache.get(k)
			if cached is not None:
				return cached
			p = self._ensure_file(k)
			try:
				with Image.open(p) as im:
					w, h = im.size
			except OSError as e:
				logger.warning("[Catalog] unreadable asset %s: %s", p, e)
				raise AssetUnavailable(k) from e
			name, description, _ = CLOTHING_ITEMS[k]
			asset = ClothingAsset(
				kind=k,
				intrinsic_width=int(w),
				intrinsic_height=int(h),
				source_ref=f"{ASSET_URL_PREFIX}{k.value}",
				name=name,
				description=description,
			)
			self._cache[k] = asset
			return asset

	def items(self) -> List[ClothingAsset]:
		return [self.resolve(k) for k in ClothingKind]

	def open_image(self, kind: Any) -> Image.Image:
		"""Decoded RGBA pixels of the asset (caller owns the returned image)."""
		asset = self.resolve(kind)
		with Image.open(self.path_for(asset.kind)) as im:
			return im.convert("RGBA")

	def kind_for_ref(self, source_ref: str) -> Optional[ClothingKind]:
		if not source_ref.startswith(ASSET_URL_PREFIX):
			return None
		try:
			return parse_kind(source_ref[len(ASSET_URL_PREFIX):])
		except AssetUnavailable:
			return None

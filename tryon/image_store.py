"""
Local image store: decode, normalise and persist uploads and exports.

Stored images are PNGs named `<prefix>_<id>.png` under the uploads directory and
addressed by URL (`<url_prefix>/<name>`), which is also what the server mounts
as static files.
"""
from __future__ import annotations

import io
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from tryon.errors import InvalidImage, UploadTooLarge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredImage:
	url: str
	width: int
	height: int
	path: Path


def decode_image(data: bytes) -> Image.Image:
	"""Decode bytes with EXIF orientation applied. Raises InvalidImage."""
	if not data:
		raise InvalidImage("No image uploaded")
	try:
		im = Image.open(io.BytesIO(data))
		im.load()
	except (UnidentifiedImageError, OSError, ValueError) as e:
		raise InvalidImage(f"Could not decode image: {e}") from e
	return ImageOps.exif_transpose(im)


class LocalImageStore:
	def __init__(
		self,
		base_dir: str | Path,
		url_prefix: str = "/uploads",
		max_bytes: int = 10 * 1024 * 1024,
		max_width: int = 1200,
		max_height: int = 1600,
	) -> None:
		self._dir = Path(base_dir)
		self._prefix = "/" + url_prefix.strip("/")
		self.max_bytes = int(max_bytes)
		self.max_width = int(max_width)
		self.max_height = int(max_height)

	@property
	def base_dir(self) -> Path:
		return self._dir

	@property
	def url_prefix(self) -> str:
		return self._prefix

	def owns(self, url: str) -> bool:
		return url.startswith(self._prefix + "/")

	def _path_for(self, url: str) -> Path:
		if not self.owns(url):
			raise FileNotFoundError(url)
		name = url[len(self._prefix) + 1:]
		# Flat directory; refuse anything that would escape it.
		if not name or "/" in name or "\\" in name or name.startswith("."):
			raise FileNotFoundError(url)
		return self._dir / name

	def _write(self, im: Image.Image, prefix: str) -> StoredImage:
		self._dir.mkdir(parents=True, exist_ok=True)
		name = f"{prefix}_{uuid.uuid4().hex}.png"
		path = self._dir / name
		im.save(path, format="PNG")
		logger.info("[Store] wrote %s (%dx%d)", path, im.width, im.height)
		return StoredImage(url=f"{self._prefix}/{name}", width=im.width, height=im.height, path=path)

	def store(self, data: bytes) -> StoredImage:
		"""
		Validate and persist an upload. Images larger than max_width x max_height
		are shrunk to fit (aspect preserved); smaller ones are kept as-is.
		"""
		if len(data) > self.max_bytes:
			raise UploadTooLarge(len(data), self.max_bytes)
		im = decode_image(data)
		if im.mode not in ("RGB", "RGBA"):
			has_alpha = "A" in im.getbands() or "transparency" in im.info
			im = im.convert("RGBA" if has_alpha else "RGB")
		if im.width > self.max_width or im.height > self.max_height:
			im = im.copy()
			im.thumbnail((self.max_width, self.max_height), Image.Resampling.LANCZOS)
		return self._write(im, "processed")

	def store_png(self, png: bytes, prefix: str = "export") -> StoredImage:
		"""Persist an already-rendered PNG (exports) without resizing."""
		return self._write(decode_image(png), prefix)

	def fetch(self, url: str) -> bytes:
		return self._path_for(url).read_bytes()

	def open(self, url: str) -> Image.Image:
		with Image.open(self._path_for(url)) as im:
			return im.convert("RGBA")

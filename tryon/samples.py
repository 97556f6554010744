"""Placeholder sample photos referenced by the default gallery."""
from __future__ import annotations

import re
from pathlib import Path

from PIL import Image, ImageDraw

SAMPLE_SIZE = (800, 1200)
_NAME_RE = re.compile(r"^[a-z0-9_-]{1,40}$")


def sample_path(samples_dir: str | Path, name: str) -> Path:
	"""
	Path of the JPEG for sample `name`, drawing a grey placeholder if it does not
	exist yet. Raises FileNotFoundError for names that are not simple slugs.
	"""
	slug = (name or "").strip().lower()
	if not _NAME_RE.match(slug):
		raise FileNotFoundError(name)
	d = Path(samples_dir)
	p = d / f"{slug}.jpg"
	if p.exists():
		return p
	d.mkdir(parents=True, exist_ok=True)
	w, h = SAMPLE_SIZE
	im = Image.new("RGB", SAMPLE_SIZE, (200, 200, 200))
	draw = ImageDraw.Draw(im)
	draw.text((w // 2, h // 2), f"Sample {slug}", fill=(51, 51, 51), anchor="mm")
	im.save(p, format="JPEG")
	return p

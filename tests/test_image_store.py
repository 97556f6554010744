import io

import pytest
from PIL import Image

from helpers import png_bytes
from tryon.errors import InvalidImage, UploadTooLarge
from tryon.image_store import LocalImageStore


@pytest.fixture
def store(tmp_path):
	return LocalImageStore(tmp_path / "uploads", url_prefix="uploads/", max_bytes=200_000)


def test_small_images_keep_their_size(store):
	stored = store.store(png_bytes((640, 480)))
	assert (stored.width, stored.height) == (640, 480)
	assert stored.url.startswith("/uploads/processed_")
	assert stored.path.exists()


def test_large_images_are_shrunk_to_fit(store):
	stored = store.store(png_bytes((2400, 1600)))
	assert (stored.width, stored.height) == (1200, 800)


def test_jpeg_is_normalised_to_png(store):
	buf = io.BytesIO()
	Image.new("L", (30, 40), 128).save(buf, format="JPEG")
	stored = store.store(buf.getvalue())
	with store.open(stored.url) as im:
		assert im.mode == "RGBA" and im.size == (30, 40)
	assert store.fetch(stored.url)[:8] == b"\x89PNG\r\n\x1a\n"


@pytest.mark.parametrize("data", [b"", b"definitely not an image"])
def test_invalid_bytes(store, data):
	with pytest.raises(InvalidImage):
		store.store(data)


def test_size_limit(store):
	with pytest.raises(UploadTooLarge):
		store.store(b"\0" * 200_001)


@pytest.mark.parametrize("url", ["/elsewhere/a.png", "/uploads/../secret", "/uploads/.hidden", "/uploads/"])
def test_foreign_or_escaping_urls(store, url):
	with pytest.raises(FileNotFoundError):
		store.fetch(url)


def test_exports_are_stored_verbatim(store):
	stored = store.store_png(png_bytes((50, 60)))
	assert stored.url.startswith("/uploads/export_")
	assert store.owns(stored.url)
	assert (stored.width, stored.height) == (50, 60)


def test_palette_transparency_is_kept(store):
	im = Image.new("P", (4, 4), 0)
	im.putpalette([0, 0, 0, 255, 0, 0] + [0] * 762)
	im.putpixel((1, 1), 1)
	buf = io.BytesIO()
	im.save(buf, format="PNG", transparency=0)
	stored = store.store(buf.getvalue())
	with store.open(stored.url) as out:
		assert out.getpixel((0, 0))[3] == 0
		assert out.getpixel((1, 1)) == (255, 0, 0, 255)

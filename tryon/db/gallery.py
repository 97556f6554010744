"""Gallery items: list_gallery_items, create_gallery_item, seed_gallery_if_empty."""
import logging
from typing import Any, Dict, List

from tryon.db.pool import get_pool

logger = logging.getLogger(__name__)

# Served when persistence is disabled, and used to seed an empty table.
DEFAULT_GALLERY: List[Dict[str, Any]] = [
	{"image_url": "/api/samples/human1", "clothing_type": "SUCCINCT Jacket", "display_order": 1},
	{"image_url": "/api/samples/human2", "clothing_type": "GPROVE Hoodie", "display_order": 2},
	{"image_url": "/api/samples/anime1", "clothing_type": "Logo Cap", "display_order": 3},
	{"image_url": "/api/samples/human3", "clothing_type": "SUCCINCT Jacket", "display_order": 4},
	{"image_url": "/api/samples/anime2", "clothing_type": "GPROVE Hoodie", "display_order": 5},
	{"image_url": "/api/samples/animal1", "clothing_type": "Logo Cap", "display_order": 6},
	{"image_url": "/api/samples/human4", "clothing_type": "SUCCINCT Jacket", "display_order": 7},
	{"image_url": "/api/samples/animal2", "clothing_type": "GPROVE Hoodie", "display_order": 8},
]


def _default_items() -> List[Dict[str, Any]]:
	return [{"id": i + 1, **item} for i, item in enumerate(DEFAULT_GALLERY)]


async def list_gallery_items() -> List[Dict[str, Any]]:
	"""Gallery ordered by display_order; the built-in list when no DB is configured."""
	pool = get_pool()
	if pool is None:
		return _default_items()
	async with pool.acquire() as conn:
		rows = await conn.fetch(
			"SELECT id, image_url, clothing_type, display_order FROM gallery_items ORDER BY display_order, id"
		)
	return [dict(r) for r in rows]


async def create_gallery_item(image_url: str, clothing_type: str, display_order: int = 0) -> Dict[str, Any]:
	pool = get_pool()
	if pool is None:
		raise RuntimeError("Database not configured")
	async with pool.acquire() as conn:
		row = await conn.fetchrow(
			"""
			INSERT INTO gallery_items (image_url, clothing_type, display_order)
			VALUES ($1, $2, $3)
			RETURNING id, image_url, clothing_type, display_order;
			""",
			image_url,
			clothing_type,
			int(display_order or 0),
		)
	return dict(row)


async def seed_gallery_if_empty() -> int:
	"""Insert DEFAULT_GALLERY into an empty table. Returns the number of rows inserted."""
	pool = get_pool()
	if pool is None:
		return 0
	async with pool.acquire() as conn:
		n = await conn.fetchval("SELECT COUNT(*) FROM gallery_items")
		if int(n or 0) > 0:
			return 0
		await conn.executemany(
			"INSERT INTO gallery_items (image_url, clothing_type, display_order) VALUES ($1, $2, $3)",
			[(i["image_url"], i["clothing_type"], i["display_order"]) for i in DEFAULT_GALLERY],
		)
	logger.info("[DB] seeded %d gallery items", len(DEFAULT_GALLERY))
	return len(DEFAULT_GALLERY)

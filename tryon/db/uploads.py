"""Upload history: record_upload, record_export, list_uploads."""
import logging
from typing import Any, Dict, List, Optional

from tryon.db.pool import get_pool

logger = logging.getLogger(__name__)

_COLUMNS = "id, session_id, original_image_url, processed_image_url, clothing_type, created_at"


def _row(r: Any) -> Dict[str, Any]:
	d = dict(r)
	if d.get("created_at") is not None:
		d["created_at"] = d["created_at"].isoformat()
	return d


async def record_upload(session_id: str, original_image_url: str) -> Optional[int]:
	"""Insert an upload row; returns its id, or None when persistence is disabled."""
	pool = get_pool()
	if pool is None:
		logger.debug("[DB] record_upload: pool is None, skipping")
		return None
	async with pool.acquire() as conn:
		return await conn.fetchval(
			"INSERT INTO upload_history (session_id, original_image_url) VALUES ($1, $2) RETURNING id",
			session_id,
			original_image_url,
		)


async def record_export(upload_id: int, processed_image_url: str, clothing_type: Optional[str]) -> None:
	pool = get_pool()
	if pool is None:
		logger.debug("[DB] record_export: pool is None, skipping")
		return
	async with pool.acquire() as conn:
		await conn.execute(
			"UPDATE upload_history SET processed_image_url = $2, clothing_type = $3 WHERE id = $1",
			int(upload_id),
			processed_image_url,
			clothing_type,
		)


async def list_uploads(limit: int = 50) -> List[Dict[str, Any]]:
	pool = get_pool()
	if pool is None:
		return []
	async with pool.acquire() as conn:
		rows = await conn.fetch(
			f"SELECT {_COLUMNS} FROM upload_history ORDER BY created_at DESC, id DESC LIMIT $1",
			max(1, min(500, int(limit))),
		)
	return [_row(r) for r in rows]

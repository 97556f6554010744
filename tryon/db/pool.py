"""Connection pool, init_db, get_status and close_db for the db package."""
import asyncio
import logging
from typing import Any, Dict, Optional

import asyncpg

from tryon.config import get_config

logger = logging.getLogger(__name__)

_pool: Optional[asyncpg.Pool] = None
_last_init_error: Optional[str] = None
_init_lock = asyncio.Lock()
_warned_no_dsn: bool = False


def get_pool() -> Optional[asyncpg.Pool]:
	"""Return the connection pool (None if not initialized). Used by domain modules."""
	return _pool


async def init_db() -> None:
	"""
	Initialise PostgreSQL connection pool and ensure tables exist.
	If database.url is not set in config.json, this becomes a no-op.
	"""
	global _pool, _warned_no_dsn, _last_init_error
	cfg = get_config()
	dsn = (cfg.database.url or "").strip()
	if not dsn:
		if not _warned_no_dsn:
			logger.warning("[DB] database.url not set in config.json; persistence disabled.")
			_warned_no_dsn = True
		_last_init_error = "database.url not set"
		return

	async with _init_lock:
		if _pool is None:
			try:
				_pool = await asyncpg.create_pool(
					dsn,
					min_size=max(1, int(cfg.database.pool_min_size)),
					max_size=max(max(1, int(cfg.database.pool_min_size)), int(cfg.database.pool_max_size)),
				)
				_last_init_error = None
			except (OSError, asyncpg.PostgresError) as e:
				_last_init_error = repr(e)
				raise

	async with _pool.acquire() as conn:
		await _create_tables(conn)


async def _create_tables(conn: asyncpg.Connection) -> None:
	"""Run all CREATE TABLE statements. Called from init_db."""
	await conn.execute(
		"""
		CREATE TABLE IF NOT EXISTS gallery_items (
			id             SERIAL PRIMARY KEY,
			image_url      TEXT NOT NULL,
			clothing_type  TEXT NOT NULL,
			display_order  INTEGER NOT NULL DEFAULT 0
		);
		"""
	)
	await conn.execute(
		"""
		CREATE TABLE IF NOT EXISTS upload_history (
			id                   SERIAL PRIMARY KEY,
			session_id           TEXT,
			original_image_url   TEXT NOT NULL,
			processed_image_url  TEXT,
			clothing_type        TEXT,
			created_at           TIMESTAMPTZ NOT NULL DEFAULT NOW()
		);
		"""
	)
	await conn.execute("CREATE INDEX IF NOT EXISTS upload_history_session_idx ON upload_history(session_id);")


def get_status() -> Dict[str, Any]:
	"""Return lightweight DB status for diagnostics."""
	dsn = (get_config().database.url or "").strip()
	return {
		"enabled": bool(dsn),
		"pool_ready": _pool is not None,
		"last_init_error": _last_init_error,
	}


async def close_db() -> None:
	"""Close the connection pool on shutdown."""
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None

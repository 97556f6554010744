"""
Best-effort PostgreSQL persistence (asyncpg) for the gallery and upload history.

Every function degrades to a no-op / built-in default when database.url is unset.
"""
from tryon.db.gallery import create_gallery_item, list_gallery_items, seed_gallery_if_empty
from tryon.db.pool import close_db, get_pool, get_status, init_db
from tryon.db.uploads import list_uploads, record_export, record_upload

__all__ = [
	"close_db",
	"create_gallery_item",
	"get_pool",
	"get_status",
	"init_db",
	"list_gallery_items",
	"list_uploads",
	"record_export",
	"record_upload",
	"seed_gallery_if_empty",
]

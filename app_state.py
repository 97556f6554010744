"""
Explicit app state - single source of truth for runtime lifecycle.
Created in lifespan, attached to app.state.state; injected into routes via Depends(get_state).
"""
from typing import Any, Optional

from PIL import Image

from tryon.catalog import AssetCatalog
from tryon.config import AppConfig
from tryon.image_store import LocalImageStore
from tryon.pose.base import PoseProvider
from tryon.registry import SessionRegistry
from tryon.render import PillowSurface
from tryon.session import OverlaySession


class AppState:
	"""
	Holds all runtime collaborators. Populated in server lifespan (or directly by tests).
	"""

	cfg: AppConfig
	catalog: AssetCatalog
	store: LocalImageStore
	pose: PoseProvider
	sessions: SessionRegistry
	surface: PillowSurface

	def __init__(
		self,
		cfg: AppConfig,
		catalog: AssetCatalog,
		store: LocalImageStore,
		pose: PoseProvider,
	) -> None:
		self.cfg = cfg
		self.catalog = catalog
		self.store = store
		self.pose = pose
		self.sessions = SessionRegistry(self.new_session, max_sessions=cfg.sessions.max_sessions)
		self.surface = PillowSurface(self.load_source)

	def new_session(self) -> OverlaySession:
		return OverlaySession(
			canvas_max_width=self.cfg.canvas.max_width,
			canvas_height=self.cfg.canvas.height,
			min_keypoint_score=self.cfg.pose.min_keypoint_score,
		)

	def load_source(self, source_ref: str) -> Image.Image:
		"""Resolve a layer reference (stored upload or clothing asset) to pixels."""
		if self.store.owns(source_ref):
			return self.store.open(source_ref)
		kind = self.catalog.kind_for_ref(source_ref)
		if kind is not None:
			return self.catalog.open_image(kind)
		raise FileNotFoundError(source_ref)

	@classmethod
	def from_config(cls, cfg: AppConfig, pose: Optional[Any] = None) -> "AppState":
		from tryon.pose.runner import build_pose_provider

		return cls(
			cfg=cfg,
			catalog=AssetCatalog(cfg.assets.dir),
			store=LocalImageStore(
				cfg.storage.uploads_dir,
				url_prefix=cfg.storage.url_prefix,
				max_bytes=cfg.storage.max_upload_bytes,
				max_width=cfg.storage.max_width,
				max_height=cfg.storage.max_height,
			),
			pose=pose if pose is not None else build_pose_provider(cfg.pose),
		)

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatabaseConfig:
	# If empty, gallery/upload history persistence is disabled (best-effort mode).
	url: str = ""
	pool_min_size: int = 1
	pool_max_size: int = 5


@dataclass(frozen=True)
class StorageConfig:
	# Uploaded and exported images are written here and served under url_prefix.
	uploads_dir: str = str(Path("data") / "uploads")
	url_prefix: str = "/uploads"
	max_upload_bytes: int = 10 * 1024 * 1024
	# Stored images are shrunk to fit inside this box (never enlarged).
	max_width: int = 1200
	max_height: int = 1600


@dataclass(frozen=True)
class AssetsConfig:
	# Expected layout: <dir>/jacket.png, <dir>/hoodie.png, <dir>/cap.png
	# Missing files are generated as placeholder art on first use.
	dir: str = "assets"


@dataclass(frozen=True)
class CanvasConfig:
	# Display box the base image is fitted into: width = min(viewport, max_width).
	max_width: int = 700
	height: int = 500


@dataclass(frozen=True)
class PoseConfig:
	backend: str = "mediapipe"  # mediapipe / none
	model_complexity: int = 1
	min_detection_confidence: float = 0.5
	# Keypoints scoring below this are treated as absent by placement.
	min_keypoint_score: float = 0.0


@dataclass(frozen=True)
class SessionsConfig:
	# Oldest sessions are discarded once this many are live.
	max_sessions: int = 100


@dataclass(frozen=True)
class ServerConfig:
	cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class LoggingConfig:
	level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
	database: DatabaseConfig = field(default_factory=DatabaseConfig)
	storage: StorageConfig = field(default_factory=StorageConfig)
	assets: AssetsConfig = field(default_factory=AssetsConfig)
	canvas: CanvasConfig = field(default_factory=CanvasConfig)
	pose: PoseConfig = field(default_factory=PoseConfig)
	sessions: SessionsConfig = field(default_factory=SessionsConfig)
	server: ServerConfig = field(default_factory=ServerConfig)
	logging: LoggingConfig = field(default_factory=LoggingConfig)


_CONFIG_PATH: Optional[Path] = None
_CONFIG_CACHE: Optional[AppConfig] = None


def _repo_root() -> Path:
	# tryon/config.py -> repo root is one level up.
	return Path(__file__).resolve().parents[1]


def get_default_config_path() -> Path:
	env = (os.getenv("TRYON_CONFIG") or "").strip()
	if env:
		return Path(env).expanduser().resolve()
	return _repo_root() / "config.json"


def set_config_path(path: str | Path) -> None:
	"""
	Override the config path (must be called before first get_config()).
	Intended for tooling and tests; the server normally uses the default path.
	"""
	global _CONFIG_PATH
	global _CONFIG_CACHE
	_CONFIG_PATH = Path(path).expanduser().resolve()
	_CONFIG_CACHE = None


def reset_config_cache() -> None:
	global _CONFIG_PATH
	global _CONFIG_CACHE
	_CONFIG_PATH = None
	_CONFIG_CACHE = None


def _deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
	cur: Any = d
	for k in keys:
		if not isinstance(cur, dict):
			return default
		cur = cur.get(k)
	return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
	try:
		return int(v)
	except (TypeError, ValueError):
		return int(default)


def _as_str(v: Any, default: str = "") -> str:
	return str(v) if v is not None else str(default)


def _as_float(v: Any, default: float) -> float:
	try:
		return float(v)
	except (TypeError, ValueError):
		return float(default)


def _as_str_list(v: Any, default: List[str]) -> List[str]:
	if isinstance(v, str):
		return [s.strip() for s in v.split(",") if s.strip()]
	if isinstance(v, list):
		return [str(s) for s in v if str(s).strip()]
	return list(default)


def _positive(v: int, default: int) -> int:
	return int(v) if int(v) > 0 else int(default)


def load_config(path: Optional[str | Path] = None) -> AppConfig:
	p = Path(path).expanduser().resolve() if path else (_CONFIG_PATH or get_default_config_path())
	if not p.exists():
		# Defaults-only config; app can still run.
		return AppConfig()
	try:
		raw = json.loads(p.read_text(encoding="utf-8"))
	except (OSError, ValueError) as e:
		# If config is malformed, fail safe to defaults (but keep app running).
		logger.warning("[Config] could not read %s, using defaults: %s", p, e)
		return AppConfig()

	if not isinstance(raw, dict):
		return AppConfig()

	db_url = _as_str(_deep_get(raw, ["database", "url"], ""), "")
	db_min = _positive(_as_int(_deep_get(raw, ["database", "pool_min_size"], 1), 1), 1)
	db_max = _positive(_as_int(_deep_get(raw, ["database", "pool_max_size"], 5), 5), 5)

	defaults = StorageConfig()
	uploads_dir = _as_str(_deep_get(raw, ["storage", "uploads_dir"], defaults.uploads_dir), defaults.uploads_dir).strip()
	url_prefix = _as_str(_deep_get(raw, ["storage", "url_prefix"], defaults.url_prefix), defaults.url_prefix).strip()
	url_prefix = "/" + url_prefix.strip("/") if url_prefix.strip("/") else defaults.url_prefix
	max_upload = _as_int(_deep_get(raw, ["storage", "max_upload_bytes"], defaults.max_upload_bytes), defaults.max_upload_bytes)
	max_w = _as_int(_deep_get(raw, ["storage", "max_width"], defaults.max_width), defaults.max_width)
	max_h = _as_int(_deep_get(raw, ["storage", "max_height"], defaults.max_height), defaults.max_height)

	assets_dir = _as_str(_deep_get(raw, ["assets", "dir"], "assets"), "assets").strip() or "assets"

	canvas_w = _as_int(_deep_get(raw, ["canvas", "max_width"], 700), 700)
	canvas_h = _as_int(_deep_get(raw, ["canvas", "height"], 500), 500)

	pose_backend = _as_str(_deep_get(raw, ["pose", "backend"], "mediapipe"), "mediapipe").strip().lower()
	pose_complexity = _as_int(_deep_get(raw, ["pose", "model_complexity"], 1), 1)
	pose_min_det = _as_float(_deep_get(raw, ["pose", "min_detection_confidence"], 0.5), 0.5)
	pose_min_score = _as_float(_deep_get(raw, ["pose", "min_keypoint_score"], 0.0), 0.0)

	max_sessions = _as_int(_deep_get(raw, ["sessions", "max_sessions"], 100), 100)

	cors = _as_str_list(_deep_get(raw, ["server", "cors_allow_origins"], ["*"]), ["*"])

	log_level = _as_str(_deep_get(raw, ["logging", "level"], "INFO"), "INFO").strip().upper() or "INFO"

	return AppConfig(
		database=DatabaseConfig(url=db_url, pool_min_size=db_min, pool_max_size=max(db_min, db_max)),
		storage=StorageConfig(
			uploads_dir=uploads_dir or defaults.uploads_dir,
			url_prefix=url_prefix,
			max_upload_bytes=_positive(max_upload, defaults.max_upload_bytes),
			max_width=_positive(max_w, defaults.max_width),
			max_height=_positive(max_h, defaults.max_height),
		),
		assets=AssetsConfig(dir=assets_dir),
		canvas=CanvasConfig(max_width=_positive(canvas_w, 700), height=_positive(canvas_h, 500)),
		pose=PoseConfig(
			backend=pose_backend or "mediapipe",
			model_complexity=min(2, max(0, int(pose_complexity))),
			min_detection_confidence=min(1.0, max(0.0, float(pose_min_det))),
			min_keypoint_score=min(1.0, max(0.0, float(pose_min_score))),
		),
		sessions=SessionsConfig(max_sessions=_positive(max_sessions, 100)),
		server=ServerConfig(cors_allow_origins=cors or ["*"]),
		logging=LoggingConfig(level=log_level),
	)


def get_config() -> AppConfig:
	global _CONFIG_CACHE
	if _CONFIG_CACHE is None:
		_CONFIG_CACHE = load_config()
	return _CONFIG_CACHE

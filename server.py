"""
HTTP entry point: `uvicorn server:app` or `python server.py --port 8000`.

Wires the editing routers to one AppState created in lifespan. Tests (and tools)
can pass their own AppState to create_app().
"""
import argparse
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app_state import AppState
from routers import catalog, gallery, sessions
from tryon import __version__, db
from tryon.config import AppConfig, get_config

logger = logging.getLogger(__name__)


def configure_logging(cfg: AppConfig) -> None:
	level = getattr(logging, (cfg.logging.level or "INFO").upper(), logging.INFO)
	logging.basicConfig(level=level, format="%(asctime)s %(levelname)s:%(name)s:%(message)s")


def create_app(state: Optional[AppState] = None) -> FastAPI:
	cfg = state.cfg if state is not None else get_config()

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		configure_logging(cfg)
		st = state if state is not None else AppState.from_config(cfg)
		app.state.state = st
		try:
			# DB is optional; without it the gallery serves defaults and history is skipped.
			try:
				await db.init_db()
				await db.seed_gallery_if_empty()
			except Exception as e:
				logger.warning("[DB] init_db failed: %r", e)
			logger.info("[Server] ready (pose backend: %s)", st.pose.name())
			yield
		finally:
			st.pose.close()
			await db.close_db()

	app = FastAPI(title="tryon", version=__version__, lifespan=lifespan)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=list(cfg.server.cors_allow_origins),
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	app.include_router(sessions.router)
	app.include_router(catalog.router)
	app.include_router(gallery.router)

	# The store creates the directory on first write.
	app.mount(cfg.storage.url_prefix, StaticFiles(directory=str(Path(cfg.storage.uploads_dir)), check_dir=False), name="uploads")

	@app.get("/healthz")
	async def healthz():
		st: AppState = app.state.state
		return {
			"status": "ok",
			"version": __version__,
			"pose_backend": st.pose.name(),
			"sessions": len(st.sessions),
			"db": db.get_status(),
		}

	return app


app = create_app()


def main() -> None:
	import uvicorn

	parser = argparse.ArgumentParser(description="Run the try-on editing API.")
	parser.add_argument("--host", default="127.0.0.1")
	parser.add_argument("--port", type=int, default=8000)
	args = parser.parse_args()
	uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
	main()

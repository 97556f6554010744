"""
FastAPI dependencies for the try-on routers. Depends(get_state) hands a route the
AppState (catalog, image store, pose provider, session registry) built in lifespan.
"""
from fastapi import Request

from app_state import AppState


def get_state(request: Request) -> AppState:
	return request.app.state.state

"""Master API router — mounts all endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from app.api import features, health, labels, levels, walls

api_router = APIRouter(prefix="/api")

api_router.include_router(health.router)
api_router.include_router(features.router)
api_router.include_router(levels.router)
api_router.include_router(walls.router)
api_router.include_router(labels.router)

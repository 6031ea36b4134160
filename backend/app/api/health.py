"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import get_engine
from app.engine.topology import TopologyEngine
from app.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(engine: TopologyEngine = Depends(get_engine)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version="0.1.0",
        features=engine.feature_count,
        levels=engine.get_level_count(),
    )

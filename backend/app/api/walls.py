"""POST /api/walls/rebuild — one time-budgeted wall rebuild pass."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import get_engine, get_scheduler
from app.engine.scheduler import RebuildScheduler
from app.engine.topology import TopologyEngine
from app.models.requests import RebuildRequest
from app.models.responses import RebuildResponse

router = APIRouter()


@router.post("/walls/rebuild", response_model=RebuildResponse)
async def rebuild_walls(
    req: RebuildRequest,
    engine: TopologyEngine = Depends(get_engine),
    scheduler: RebuildScheduler = Depends(get_scheduler),
) -> RebuildResponse:
    extent = tuple(req.bbox) if req.bbox is not None else None
    result = scheduler.run_pass(req.level, extent)
    return RebuildResponse(
        rebuilt=result.rebuilt,
        failed=result.failed,
        remaining=result.remaining,
        deferred=result.deferred,
        elapsed_ms=result.elapsed_ms,
        dirty=len(engine.dirty_levels()),
    )

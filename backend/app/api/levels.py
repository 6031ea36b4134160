"""GET /api/levels — level numbers present in an extent (level switcher)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api.features import parse_bbox
from app.dependencies import get_engine
from app.engine.topology import TopologyEngine
from app.models.responses import LevelsResponse

router = APIRouter()


@router.get("/levels", response_model=LevelsResponse)
async def list_levels(
    bbox: str | None = Query(None, description="minx,miny,maxx,maxy"),
    engine: TopologyEngine = Depends(get_engine),
) -> LevelsResponse:
    return LevelsResponse(levels=engine.level_numbers_in_extent(parse_bbox(bbox)))

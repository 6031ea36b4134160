"""POST /api/labels — place labels for one level in one view."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import get_engine, get_label_engine, get_scheduler
from app.engine.labels import LabelPlacementEngine, label_candidate
from app.engine.scheduler import RebuildScheduler
from app.engine.topology import TopologyEngine
from app.engine.view import ViewState
from app.models.requests import LabelsRequest
from app.models.responses import LabelOut, LabelsResponse

router = APIRouter()


@router.post("/labels", response_model=LabelsResponse)
async def place_labels(
    req: LabelsRequest,
    engine: TopologyEngine = Depends(get_engine),
    scheduler: RebuildScheduler = Depends(get_scheduler),
    label_engine: LabelPlacementEngine = Depends(get_label_engine),
) -> LabelsResponse:
    view = ViewState(
        center=req.view.center,
        resolution=req.view.resolution,
        size=req.view.size,
        rotation=req.view.rotation,
        zoom=req.view.zoom,
    )
    extent = view.extent
    scheduler.run_pass(req.level, extent)

    candidates = [f for f in engine.features_in_extent(extent, req.level) if label_candidate(f)]
    walls = [view.to_screen(w) for w in engine.wall_polygons(req.level, extent)]
    result = label_engine.place_labels(candidates, view, walls)

    return LabelsResponse(
        labels=[
            LabelOut(
                feature_id=p.feature_id,
                x=p.x,
                y=p.y,
                width=p.width,
                height=p.height,
                variant=p.variant,
                text=p.content.text,
                icon=p.content.icon,
                bounds=list(p.bounds),
                from_cache=p.from_cache,
            )
            for p in result.placed
        ],
        omitted=result.omitted,
        errors=result.errors,
        zoom_bucket=view.bucket,
    )

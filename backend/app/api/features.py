"""POST /api/features — ingest GeoJSON; GET /api/features — query one level."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_engine, get_scheduler
from app.engine.features import feature_from_geojson, feature_to_geojson
from app.engine.scheduler import RebuildScheduler
from app.engine.topology import Extent, TopologyEngine
from app.models.requests import FeatureCollectionRequest
from app.models.responses import FeatureCollectionResponse, IngestResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_bbox(bbox: str | None) -> Extent | None:
    """``"minx,miny,maxx,maxy"`` → extent tuple; 422 when malformed."""
    if bbox is None or bbox == "":
        return None
    try:
        values = [float(v) for v in bbox.split(",")]
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid bbox: {bbox!r}")
    if len(values) != 4:
        raise HTTPException(status_code=422, detail="bbox needs exactly 4 values")
    return (values[0], values[1], values[2], values[3])


@router.post("/features", response_model=IngestResponse)
async def ingest_features(
    req: FeatureCollectionRequest,
    engine: TopologyEngine = Depends(get_engine),
) -> IngestResponse:
    start = time.perf_counter()
    response = IngestResponse()

    for raw in req.features:
        fallback_id = f"feature/{engine.feature_count}"
        try:
            feature = feature_from_geojson(raw.model_dump(), fallback_id)
        except ValueError as e:
            key = str(raw.id) if raw.id is not None else fallback_id
            response.errors[key] = str(e)
            response.skipped += 1
            logger.warning("Skipping feature %s: %s", key, e)
            continue
        if engine.add_feature(feature):
            response.ingested += 1
        else:
            response.skipped += 1

    response.level_count = engine.get_level_count()
    logger.info(
        "Ingested %d features (%d skipped) in %.0fms, %d levels",
        response.ingested,
        response.skipped,
        (time.perf_counter() - start) * 1000,
        response.level_count,
    )
    return response


@router.get("/features", response_model=FeatureCollectionResponse)
async def query_features(
    level: int = Query(..., description="Level number"),
    bbox: str | None = Query(None, description="minx,miny,maxx,maxy"),
    engine: TopologyEngine = Depends(get_engine),
    scheduler: RebuildScheduler = Depends(get_scheduler),
) -> FeatureCollectionResponse:
    extent = parse_bbox(bbox)
    scheduler.run_pass(level, extent)
    return FeatureCollectionResponse(
        features=[feature_to_geojson(f) for f in engine.features_in_extent(extent, level)],
    )

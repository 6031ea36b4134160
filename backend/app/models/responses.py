"""API response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    features: int = 0
    levels: int = 0


class IngestResponse(BaseModel):
    ingested: int = 0
    skipped: int = 0
    errors: dict[str, str] = Field(default_factory=dict)
    level_count: int = 0


class FeatureCollectionResponse(BaseModel):
    type: str = "FeatureCollection"
    features: list[dict[str, Any]] = Field(default_factory=list)


class LevelsResponse(BaseModel):
    levels: list[int] = Field(default_factory=list)


class RebuildResponse(BaseModel):
    rebuilt: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)
    remaining: int = 0
    deferred: bool = False
    elapsed_ms: float = 0.0
    dirty: int = 0


class LabelOut(BaseModel):
    feature_id: str
    x: float
    y: float
    width: float
    height: float
    variant: str
    text: str = ""
    icon: str | None = None
    bounds: list[float] = Field(default_factory=list)
    from_cache: bool = False


class LabelsResponse(BaseModel):
    labels: list[LabelOut] = Field(default_factory=list)
    omitted: list[str] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)
    zoom_bucket: int = 0

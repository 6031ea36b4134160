"""API request models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class GeoJSONFeature(BaseModel):
    type: Literal["Feature"] = "Feature"
    id: str | int | None = None
    geometry: dict[str, Any] | None = Field(None, description="GeoJSON geometry object")
    properties: dict[str, Any] | None = Field(default_factory=dict, description="Tags")


class FeatureCollectionRequest(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[GeoJSONFeature] = Field(default_factory=list)


class RebuildRequest(BaseModel):
    level: int | None = Field(None, description="Level number; all levels when omitted")
    bbox: list[float] | None = Field(None, description="minx, miny, maxx, maxy")

    @field_validator("bbox")
    @classmethod
    def _four_values(cls, v: list[float] | None) -> list[float] | None:
        if v is not None and len(v) != 4:
            raise ValueError("bbox needs exactly 4 values")
        return v


class ViewModel(BaseModel):
    center: tuple[float, float] = Field(..., description="View centre in map units")
    resolution: float = Field(..., gt=0, description="Map units per pixel")
    size: tuple[float, float] = Field(..., description="Viewport width/height in pixels")
    rotation: float = Field(default=0.0, description="Rotation in radians")
    zoom: float | None = Field(default=None, description="Zoom level (derived when omitted)")


class LabelsRequest(BaseModel):
    level: int = Field(..., description="Level number to label")
    view: ViewModel

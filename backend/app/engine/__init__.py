"""IndoorSight geometry engine: level topology, wall synthesis, label placement."""

from app.engine.config import LabelConfig, SchedulerConfig, TopologyConfig
from app.engine.features import Feature, feature_from_geojson, feature_to_geojson
from app.engine.level import Level
from app.engine.scheduler import RebuildPass, RebuildScheduler
from app.engine.topology import TopologyEngine
from app.engine.view import ViewState, zoom_bucket

__all__ = [
    "LabelConfig",
    "SchedulerConfig",
    "TopologyConfig",
    "Feature",
    "feature_from_geojson",
    "feature_to_geojson",
    "Level",
    "RebuildPass",
    "RebuildScheduler",
    "TopologyEngine",
    "ViewState",
    "zoom_bucket",
]

"""Label placement -- measured label boxes that avoid walls and each other.

Modules:
  content -- label lines, icons and fallback variants; default indoor provider
  measure -- word-wrapped rectangles for content in a box of given width
  occupancy -- regions already claimed in the current frame
  cache -- per-feature placements keyed by zoom bucket
  placement -- the search loop
"""

from app.engine.labels.cache import NO_FIT, CacheEntry, LabelCache, Placement
from app.engine.labels.content import (
    LabelContent,
    LabelLine,
    LabelProvider,
    default_label_provider,
    label_candidate,
)
from app.engine.labels.measure import MeasuredLabel, PillowTextMeasurer, TextMeasurer
from app.engine.labels.occupancy import OccupancySet
from app.engine.labels.placement import (
    LabelPlacementEngine,
    LabelPlacementResult,
    PlacedLabel,
)

__all__ = [
    "NO_FIT",
    "CacheEntry",
    "LabelCache",
    "Placement",
    "LabelContent",
    "LabelLine",
    "LabelProvider",
    "default_label_provider",
    "label_candidate",
    "MeasuredLabel",
    "PillowTextMeasurer",
    "TextMeasurer",
    "OccupancySet",
    "LabelPlacementEngine",
    "LabelPlacementResult",
    "PlacedLabel",
]

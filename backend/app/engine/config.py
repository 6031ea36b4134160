"""Engine configuration — wall synthesis, rebuild scheduling and label placement."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class TopologyConfig:
    """Wall synthesis and level routing parameters (map units, usually metres)."""

    # Perimeter walls are thicker than partitions between adjacent rooms.
    outer_wall_width: float = 0.4
    inner_wall_width: float = 0.2

    # Door openings
    default_door_width: float = 1.2
    door_margin: float = 0.5

    # Entrance walkways
    walkway_search_distance: float = 1.0
    walkway_probe_radius: float = 0.5
    walkway_length: float = 1.0
    entrance_kinds: frozenset[str] = field(
        default_factory=lambda: frozenset(
            {"yes", "main", "secondary", "service", "emergency", "exit", "home", "staircase"}
        )
    )


@dataclass
class SchedulerConfig:
    """Soft per-pass budget for wall rebuilds."""

    budget_ms: float = 100.0
    retry_delay_ms: float = 500.0


@dataclass
class LabelConfig:
    """Label placement search parameters (screen pixels)."""

    max_iterations: int = 10
    min_width: float = 30.0
    point_max_width: float = 500.0
    # Width step when a point label collides: measured width minus this margin.
    point_shrink_margin: float = 50.0
    area_shrink_margin: float = 1.0
    # Overflow tolerance when comparing measured content with the box width.
    scroll_tolerance: float = 2.0
    default_variant: str = "default"
    # Polylabel precision in map units.
    pole_tolerance: float = 0.1
    cache_size: int = 4096

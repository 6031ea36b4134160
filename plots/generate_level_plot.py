"""generate_level_plot.py -- Render synthesized walls per level to PNG.

Loads a GeoJSON FeatureCollection, routes it through the TopologyEngine,
rebuilds every wall and draws one panel per Level: clipped rooms, wall
polygon, door openings, walkways.

Usage: python plots/generate_level_plot.py [samples/office_floor.geojson]
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.patches import PathPatch
from matplotlib.path import Path as MplPath

from app.engine.features import feature_from_geojson
from app.engine.topology import TopologyEngine
from app.utils.geometry import lines_of, polygons_of

ROOT = Path(__file__).resolve().parent.parent
OUT_DIR = Path(__file__).resolve().parent

_BG = "#1a1a2e"
_TEXT = "#e0e0e0"
_ROOM = "#45B7D1"
_WALL = "#e0e0e0"
_DOOR = "#FF6B6B"
_WALKWAY = "#FFEAA7"


def _polygon_patch(poly, **kwargs) -> PathPatch:
    verts = []
    codes = []
    for ring in [poly.exterior, *poly.interiors]:
        coords = list(ring.coords)
        verts.extend(coords)
        codes.extend([MplPath.MOVETO] + [MplPath.LINETO] * (len(coords) - 2) + [MplPath.CLOSEPOLY])
    return PathPatch(MplPath(verts, codes), **kwargs)


def _draw_level(ax, engine: TopologyEngine, level) -> None:
    for feature in engine.member_features(level):
        if feature.get("indoor") == "level":
            continue
        for poly in polygons_of(feature.geometry):
            ax.add_patch(_polygon_patch(poly, facecolor=_ROOM, alpha=0.35, edgecolor="none"))

    for poly in polygons_of(level.wall.geometry):
        ax.add_patch(_polygon_patch(poly, facecolor=_WALL, edgecolor="none"))

    for line in lines_of(level.skeleton):
        xs, ys = line.xy
        ax.plot(xs, ys, color=_TEXT, linewidth=0.3, alpha=0.4)

    for poly in polygons_of(level.door_openings):
        ax.add_patch(_polygon_patch(poly, facecolor=_DOOR, alpha=0.6, edgecolor="none"))

    for walkway in level.walkways:
        for line in lines_of(walkway.geometry):
            xs, ys = line.xy
            ax.plot(xs, ys, color=_WALKWAY, linewidth=1.5)

    minx, miny, maxx, maxy = level.region.bounds
    ax.set_xlim(minx - 1, maxx + 1)
    ax.set_ylim(miny - 1, maxy + 1)
    ax.set_aspect("equal")
    ax.set_facecolor(_BG)
    ax.tick_params(colors=_TEXT, labelsize=5)
    ax.set_title(
        f"level {level.level_number} (#{level.id}), {len(level.members)} members",
        color=_TEXT,
        fontsize=7,
    )


# == Main =====================================================================

def main():
    geojson_path = Path(sys.argv[1]) if len(sys.argv) > 1 else ROOT / "samples" / "office_floor.geojson"
    out_png = OUT_DIR / f"levels_{geojson_path.stem}.png"

    print(f"Loading: {geojson_path.name}")
    data = json.loads(geojson_path.read_text(encoding="utf-8"))

    engine = TopologyEngine()
    for i, raw in enumerate(data.get("features", [])):
        try:
            engine.add_feature(feature_from_geojson(raw, f"feature/{i}"))
        except ValueError as e:
            print(f"  skipped feature {i}: {e}")

    engine.rebuild_walls()
    levels = engine.levels()
    if not levels:
        print("No levels found.")
        return

    fig, axes = plt.subplots(1, len(levels), figsize=(5 * len(levels), 5), squeeze=False)
    fig.patch.set_facecolor(_BG)
    for ax, level in zip(axes[0], levels):
        _draw_level(ax, engine, level)

    fig.savefig(str(out_png), dpi=150, facecolor=_BG)
    plt.close(fig)
    print(f"Saved: {out_png}")
    print(f"  {engine.feature_count} features -> {len(levels)} levels")


if __name__ == "__main__":
    main()

"""FastAPI dependency injection: process-wide engine singletons."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from app.config import settings
from app.engine.config import LabelConfig, SchedulerConfig
from app.engine.labels import LabelPlacementEngine, PillowTextMeasurer
from app.engine.scheduler import RebuildScheduler
from app.engine.topology import TopologyEngine

logger = logging.getLogger(__name__)

_engine: TopologyEngine | None = None
_scheduler: RebuildScheduler | None = None
_labels: LabelPlacementEngine | None = None


def _defer_on_loop(delay_s: float, callback: Callable[[], Any]) -> None:
    """Run a follow-up rebuild pass on the event loop, if one is running."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No running event loop, follow-up rebuild left to the caller")
        return
    loop.call_later(delay_s, callback)


def get_engine() -> TopologyEngine:
    """Get or create the global TopologyEngine singleton."""
    global _engine
    if _engine is None:
        _engine = TopologyEngine()
    return _engine


def get_scheduler() -> RebuildScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = RebuildScheduler(
            get_engine(),
            SchedulerConfig(
                budget_ms=settings.rebuild_budget_ms,
                retry_delay_ms=settings.rebuild_retry_delay_ms,
            ),
            defer=_defer_on_loop,
        )
    return _scheduler


def get_label_engine() -> LabelPlacementEngine:
    global _labels
    if _labels is None:
        _labels = LabelPlacementEngine(
            measurer=PillowTextMeasurer(font_size=settings.label_font_size),
            config=LabelConfig(cache_size=settings.label_cache_size),
        )
    return _labels


def reset_state() -> None:
    """Drop all singletons (tests, reloading a dataset)."""
    global _engine, _scheduler, _labels
    _engine = None
    _scheduler = None
    _labels = None

"""Time-budgeted wall rebuild scheduler.

A pass walks the Levels in view in creation order and rebuilds the dirty
ones. Elapsed time is checked before each Level; once the soft budget is
spent the pass stops at that Level boundary and a follow-up pass is
scheduled through the ``defer`` hook. A Level rebuild is never interrupted.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from app.engine.config import SchedulerConfig
from app.engine.topology import Extent, TopologyEngine

logger = logging.getLogger(__name__)

DeferHook = Callable[[float, Callable[[], Any]], Any]


@dataclass
class RebuildPass:
    """Outcome of one scheduling pass."""

    rebuilt: list[int] = field(default_factory=list)  # Level ids
    failed: list[int] = field(default_factory=list)  # Level ids kept stale
    remaining: int = 0
    deferred: bool = False
    elapsed_ms: float = 0.0


class RebuildScheduler:
    def __init__(
        self,
        engine: TopologyEngine,
        config: SchedulerConfig | None = None,
        clock: Callable[[], float] = time.perf_counter,
        defer: DeferHook | None = None,
    ) -> None:
        self.engine = engine
        self.config = config or SchedulerConfig()
        self._clock = clock
        self._defer = defer
        self._pending = False

    @property
    def pending(self) -> bool:
        """True while a follow-up pass is scheduled but has not run yet."""
        return self._pending

    def run_pass(
        self,
        level_number: int | None = None,
        extent: Extent | None = None,
    ) -> RebuildPass:
        start = self._clock()
        result = RebuildPass()

        dirty = [lv for lv in self.engine.levels_in_view(level_number, extent) if lv.dirty]
        for i, level in enumerate(dirty):
            elapsed_ms = (self._clock() - start) * 1000
            if (result.rebuilt or result.failed) and elapsed_ms > self.config.budget_ms:
                result.remaining = len(dirty) - i
                result.deferred = True
                break
            self.engine.rebuild_wall(level)
            if level.rebuild_error is None:
                result.rebuilt.append(level.id)
            else:
                result.failed.append(level.id)

        result.elapsed_ms = (self._clock() - start) * 1000
        if result.deferred:
            logger.info(
                "Rebuild pass over budget after %d levels (%.0fms), %d deferred",
                len(result.rebuilt),
                result.elapsed_ms,
                result.remaining,
            )
            self._schedule(level_number, extent)
        elif result.rebuilt or result.failed:
            logger.debug(
                "Rebuild pass: %d levels (%d failed) in %.1fms",
                len(result.rebuilt),
                len(result.failed),
                result.elapsed_ms,
            )
        return result

    def _schedule(self, level_number: int | None, extent: Extent | None) -> None:
        if self._defer is None or self._pending:
            return
        self._pending = True
        self._defer(
            self.config.retry_delay_ms / 1000,
            lambda: self._run_deferred(level_number, extent),
        )

    def _run_deferred(self, level_number: int | None, extent: Extent | None) -> RebuildPass:
        self._pending = False
        return self.run_pass(level_number, extent)

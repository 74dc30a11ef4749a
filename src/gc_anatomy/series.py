"""Stacked heap series derived from candles.

Every retained cycle contributes a "before gc" and an "after gc" bar. Each bar
is split into four stacked components (old generation, tenured during the
cycle, young, survivors) so that the stack adds up to the reported heap
occupancy.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping

from pydantic import BaseModel, ConfigDict, Field

from gc_anatomy.candles import UNASSIGNED_GC_ID, Candle
from gc_anatomy.events import CollectionType

logger = logging.getLogger(__name__)


class SeriesLayout(BaseModel):
    """X-axis placement of the before/after bars."""

    model_config = ConfigDict(frozen=True)

    stride: float = Field(default=2.3, gt=0.0)
    after_offset: float = Field(default=1.0, ge=0.0)


class HeapSeries(BaseModel):
    """Four aligned bar series plus the tick marks naming each cycle."""

    x: list[float] = Field(default_factory=list)
    heap: list[int] = Field(default_factory=list)
    tenured: list[int] = Field(default_factory=list)
    young: list[int] = Field(default_factory=list)
    survivors: list[int] = Field(default_factory=list)
    text: list[str] = Field(default_factory=list)

    tick_values: list[float] = Field(default_factory=list)
    tick_labels: list[str] = Field(default_factory=list)

    warnings: list[str] = Field(default_factory=list)

    def add_point(
        self, x: float, heap: int, tenured: int, young: int, survivors: int, text: str
    ) -> None:
        self.x.append(x)
        self.heap.append(heap)
        self.tenured.append(tenured)
        self.young.append(young)
        self.survivors.append(survivors)
        self.text.append(text)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


def build_series(
    candles: Mapping[int, Candle],
    exclude: Collection[CollectionType] = frozenset(),
    layout: SeriesLayout | None = None,
) -> HeapSeries:
    """Build the stacked heap series for every cycle not excluded by collection type.

    Cycles are laid out in ascending GC id order. When promotion accounting
    does not fit inside the reported occupancy the affected bar falls back to
    the raw young/survivor sizes with nothing attributed to tenured, and a
    warning is recorded.
    """
    layout = layout or SeriesLayout()
    series = HeapSeries()
    ix = 0

    for gc_id in sorted(candles):
        if gc_id == UNASSIGNED_GC_ID:
            continue
        candle = candles[gc_id]
        if candle.collection_type in exclude:
            continue

        tenured_bytes = candle.tenured
        before_x = ix * layout.stride
        after_x = before_x + layout.after_offset

        # Before GC
        old_before = candle.before_gc - candle.young_before
        if old_before < 0:
            series.warn(
                f"GC {gc_id}: young generation ({candle.young_before}) exceeds "
                f"heap used before GC ({candle.before_gc})"
            )
        candidates = candle.young_before + candle.survivors_before
        if tenured_bytes > candidates:
            series.warn(
                f"GC {gc_id}: {tenured_bytes} bytes tenured but only "
                f"{candidates} bytes of young and survivor space before GC"
            )
            series.add_point(
                before_x,
                old_before,
                0,
                candle.young_before,
                candle.survivors_before,
                f"[{gc_id}] before gc",
            )
        else:
            series.add_point(
                before_x,
                old_before,
                tenured_bytes,
                max(0, candle.young_before - tenured_bytes),
                candle.survivors_before - max(0, tenured_bytes - candle.young_before),
                f"[{gc_id}] before gc",
            )
        series.tick_values.append(before_x)
        series.tick_labels.append(candle.title())

        # After GC
        if candle.after_gc < tenured_bytes:
            series.warn(
                f"GC {gc_id}: {tenured_bytes} bytes tenured but heap used after GC "
                f"is only {candle.after_gc}"
            )
            old_after = candle.after_gc - candle.young_after
            after_tenured = 0
        else:
            old_after = candle.after_gc - candle.young_after - tenured_bytes
            after_tenured = tenured_bytes
        if old_after < 0:
            series.warn(
                f"GC {gc_id}: young generation and tenured bytes exceed "
                f"heap used after GC ({candle.after_gc})"
            )
        series.add_point(
            after_x,
            old_after,
            after_tenured,
            candle.young_after,
            candle.survivors_after,
            f"[{gc_id}] after gc",
        )

        ix += 1

    return series

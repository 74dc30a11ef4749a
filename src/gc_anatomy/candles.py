"""Per-cycle accumulation of GC events into candles.

A candle gathers everything the recording says about one GC id: total heap
before/after, the young generation split, bytes promoted to the old
generation, and the names used to label the cycle on a chart.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

from pydantic import BaseModel

from gc_anatomy.events import (
    CollectionType,
    Event,
    G1GarbageCollection,
    G1HeapSummary,
    GarbageCollection,
    GCHeapSummary,
    GCPhasePause,
    GCWhen,
    JfrEvent,
    PromoteObjectInNewPLAB,
    PromoteObjectOutsidePLAB,
    UnrecognizedEvent,
    YoungGarbageCollection,
    cycle_id,
)

# Bucket for events without a GC id. Never emitted.
UNASSIGNED_GC_ID = 2**64 - 1


class Candle(BaseModel):
    """Mutable accumulator for a single GC cycle."""

    gc_id: int = UNASSIGNED_GC_ID

    before_gc: int = 0
    after_gc: int = 0
    young_before: int = 0
    young_after: int = 0
    survivors_before: int = 0
    survivors_after: int = 0

    # Only additive field.
    tenured: int = 0

    collection_type: CollectionType = CollectionType.UNKNOWN
    gc_name: str = ""
    gc_pause_name: str = ""
    cause: str = ""
    sum_of_pauses: timedelta | None = None
    longest_pause: timedelta | None = None
    tenuring_threshold: int = 0

    def title(self) -> str:
        """Chart label for the cycle.

        Known types use their JFR display value ("Prepare Mixed", "Concurrent
        Start"), not the member-style name. An unknown type falls back to the
        pause-phase name.
        """
        if self.collection_type is CollectionType.UNKNOWN:
            return self.gc_pause_name
        return self.collection_type.value


def apply_event(candle: Candle, event: JfrEvent | UnrecognizedEvent) -> None:
    """Fold one event into its cycle's candle."""
    if isinstance(event, G1GarbageCollection):
        candle.collection_type = event.collection_type

    elif isinstance(event, PromoteObjectOutsidePLAB):
        if event.tenured:
            candle.tenured += event.object_size

    elif isinstance(event, PromoteObjectInNewPLAB):
        if event.tenured:
            candle.tenured += event.plab_size

    elif isinstance(event, G1HeapSummary):
        if event.when is GCWhen.BEFORE:
            candle.young_before = event.eden_used_size
            candle.survivors_before = event.survivor_used_size
        else:
            candle.young_after = event.eden_used_size
            candle.survivors_after = event.survivor_used_size

    elif isinstance(event, GCHeapSummary):
        if event.when is GCWhen.BEFORE:
            candle.before_gc = event.heap_used
        else:
            candle.gc_id = event.gc_id
            candle.after_gc = event.heap_used

    elif isinstance(event, GarbageCollection):
        candle.gc_name = event.name
        candle.cause = event.cause
        candle.sum_of_pauses = event.sum_of_pauses
        candle.longest_pause = event.longest_pause

    elif isinstance(event, GCPhasePause):
        candle.gc_pause_name = event.name

    elif isinstance(event, YoungGarbageCollection):
        candle.tenuring_threshold = event.tenuring_threshold


def aggregate(events: Iterable[Event]) -> dict[int, Candle]:
    """Fold an ordered event stream into one candle per GC id.

    Events without a GC id land in the ``UNASSIGNED_GC_ID`` bucket. The
    returned mapping is ordered by ascending GC id.
    """
    candles: dict[int, Candle] = {}

    for event in events:
        gc_id = cycle_id(event)
        key = UNASSIGNED_GC_ID if gc_id is None else gc_id

        candle = candles.get(key)
        if candle is None:
            candle = candles[key] = Candle(gc_id=key)

        apply_event(candle, event)

    return dict(sorted(candles.items()))

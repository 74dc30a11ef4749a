"""Age/size scatter series from ``jdk.TenuringDistribution`` events."""

from __future__ import annotations

from collections.abc import Iterable
from itertools import groupby

from pydantic import BaseModel, Field

from gc_anatomy.events import Event, TenuringDistribution


class TenuringSeries(BaseModel):
    """Surviving bytes per object age for one run of a GC id."""

    gc_id: int
    ages: list[int] = Field(default_factory=list)
    sizes: list[int] = Field(default_factory=list)


def build_tenuring(events: Iterable[Event]) -> list[TenuringSeries]:
    """Group tenuring distributions into one series per contiguous run of GC id.

    Runs are taken in stream order after dropping every other event kind, so
    the same GC id reported twice with another id in between yields two series.
    """
    distributions = [event for event in events if isinstance(event, TenuringDistribution)]

    result: list[TenuringSeries] = []
    for gc_id, run in groupby(distributions, key=lambda event: event.gc_id):
        series = TenuringSeries(gc_id=gc_id)
        for event in run:
            series.ages.append(event.age)
            series.sizes.append(event.size)
        result.append(series)
    return result

"""Loading a ``jfr print --json`` document and analysing it."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from functools import cached_property
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from gc_anatomy.candles import Candle, aggregate
from gc_anatomy.events import CollectionType, Event
from gc_anatomy.series import HeapSeries, SeriesLayout, build_series
from gc_anatomy.tenuring import TenuringSeries, build_tenuring

logger = logging.getLogger(__name__)


class RecordingFormatError(ValueError):
    """The recording could not be decoded."""


class Recording(BaseModel):
    events: list[Event] = Field(default_factory=list)


class JfrDocument(BaseModel):
    """Top-level shape: ``{"recording": {"events": [...]}}``."""

    recording: Recording


def _describe_validation_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"]) or "document"
    message = f"{location}: {error['msg']}"
    value = error.get("input")
    if isinstance(value, (str, int, float, bool)):
        message += f" (got {value!r})"
    if exc.error_count() > 1:
        message += f" [{exc.error_count() - 1} more error(s)]"
    return message


def load_recording(source: bytes | str | Path) -> Recording:
    """Decode a JFR JSON document, keeping events in recording order.

    Raises:
        RecordingFormatError: if the JSON is malformed or a recognized event
            is missing a field or carries an unparseable value.
    """
    if isinstance(source, Path):
        source = source.read_bytes()
    try:
        document = JfrDocument.model_validate_json(source)
    except ValidationError as e:
        raise RecordingFormatError(_describe_validation_error(e)) from e

    logger.debug("Decoded %d events", len(document.recording.events))
    return document.recording


def parse_collection_type_filter(values: Iterable[str]) -> set[CollectionType]:
    """Turn repeated filter values into collection types, ignoring unknown names."""
    selected: set[CollectionType] = set()
    for value in values:
        collection_type = CollectionType.lookup(value)
        if collection_type is None:
            logger.debug("Ignoring unknown collection type filter %r", value)
            continue
        selected.add(collection_type)
    return selected


class Graphs(BaseModel):
    """Everything the charting layer needs for one filter selection."""

    ages: list[TenuringSeries] = Field(default_factory=list)
    heap: HeapSeries = Field(default_factory=HeapSeries)


class RecordingAnalysis:
    """Aggregates a recording once and derives series for any number of filters."""

    def __init__(self, recording: Recording, layout: SeriesLayout | None = None) -> None:
        self.recording = recording
        self.layout = layout or SeriesLayout()

    @cached_property
    def candles(self) -> dict[int, Candle]:
        return aggregate(self.recording.events)

    def heap_series(self, exclude: Collection[CollectionType] = frozenset()) -> HeapSeries:
        return build_series(self.candles, exclude, self.layout)

    def tenuring(self) -> list[TenuringSeries]:
        return build_tenuring(self.recording.events)

    def graphs(self, exclude: Collection[CollectionType] = frozenset()) -> Graphs:
        return Graphs(ages=self.tenuring(), heap=self.heap_series(exclude))

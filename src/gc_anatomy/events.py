"""Typed model of the JFR garbage-collection events printed by ``jfr print --json``.

Each recognized event kind is a frozen pydantic model. The ``Event`` union is
closed over the known kinds; any other ``type`` tag decodes to
``UnrecognizedEvent`` so that newer recordings never fail to load because of
events this package does not read.
"""

from __future__ import annotations

import re
from datetime import timedelta, timezone
from enum import Enum
from typing import Annotated, Any, ClassVar, TypeAlias, Union

from pydantic import (
    AfterValidator,
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# ============================================================
# TYPE ALIASES
# ============================================================

ByteCount: TypeAlias = Annotated[int, Field(ge=0)]
GcId: TypeAlias = Annotated[int, Field(ge=0)]

# Offset-carrying JFR timestamp normalised to UTC; sub-microsecond digits are dropped.
UtcTimestamp: TypeAlias = Annotated[
    AwareDatetime, AfterValidator(lambda value: value.astimezone(timezone.utc))
]

UNRECOGNIZED_TAG = "unrecognized"

# ============================================================
# ENUMS
# ============================================================


class GCWhen(str, Enum):
    """Phase marker of a heap summary."""

    BEFORE = "Before GC"
    AFTER = "After GC"


class CollectionType(str, Enum):
    """G1 young collection classification."""

    NORMAL = "Normal"
    PREPARE_MIXED = "Prepare Mixed"
    CONCURRENT_START = "Concurrent Start"
    MIXED = "Mixed"
    UNKNOWN = "Unknown"

    @classmethod
    def lookup(cls, name: str) -> CollectionType | None:
        """Resolve a display value ("Prepare Mixed") or member-style name ("PrepareMixed")."""
        wanted = re.sub(r"[\s_-]", "", name).lower()
        for member in cls:
            if re.sub(r"\s", "", member.value).lower() == wanted:
                return member
        return None


# ============================================================
# PYDANTIC MODELS
# ============================================================


class JfrEvent(BaseModel):
    """Fields shared by every recognized event kind."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    event_type: ClassVar[str] = ""

    start_time: UtcTimestamp
    gc_id: GcId

    @model_validator(mode="before")
    @classmethod
    def unwrap_values(cls, data: Any) -> Any:
        """Accept the ``{"type": ..., "values": {...}}`` envelope as printed by jfr."""
        if isinstance(data, dict) and isinstance(data.get("values"), dict):
            return data["values"]
        return data


class TenuringDistribution(JfrEvent):
    """Bytes of surviving objects at one age, reported per young collection."""

    event_type: ClassVar[str] = "jdk.TenuringDistribution"

    age: int = Field(ge=0)
    size: ByteCount


class GCHeapSummary(JfrEvent):
    """Total heap occupancy before or after a collection."""

    event_type: ClassVar[str] = "jdk.GCHeapSummary"

    when: GCWhen
    heap_used: ByteCount


class G1HeapSummary(JfrEvent):
    """Young generation occupancy of a region-based (G1) heap."""

    event_type: ClassVar[str] = "jdk.G1HeapSummary"

    when: GCWhen
    eden_used_size: ByteCount
    eden_total_size: ByteCount
    survivor_used_size: ByteCount


class G1GarbageCollection(JfrEvent):
    event_type: ClassVar[str] = "jdk.G1GarbageCollection"

    collection_type: CollectionType = Field(alias="type")

    @field_validator("collection_type", mode="before")
    @classmethod
    def coerce_collection_type(cls, value: Any) -> Any:
        if isinstance(value, CollectionType):
            return value
        if isinstance(value, str):
            return CollectionType.lookup(value) or CollectionType.UNKNOWN
        return CollectionType.UNKNOWN


class OldGarbageCollection(JfrEvent):
    event_type: ClassVar[str] = "jdk.OldGarbageCollection"

    duration: timedelta


class YoungGarbageCollection(JfrEvent):
    event_type: ClassVar[str] = "jdk.YoungGarbageCollection"

    duration: timedelta
    tenuring_threshold: int = Field(ge=0)


class GarbageCollection(JfrEvent):
    """Collector-level summary of one GC (collector name, cause, pause totals)."""

    event_type: ClassVar[str] = "jdk.GarbageCollection"

    duration: timedelta
    name: str
    cause: str
    sum_of_pauses: timedelta
    longest_pause: timedelta


class GCPhasePause(JfrEvent):
    """Top-level pause phase, e.g. ``Pause Young (Normal) (G1 Evacuation Pause)``."""

    event_type: ClassVar[str] = "jdk.GCPhasePause"

    duration: timedelta | None = None
    name: str


class PromoteObjectOutsidePLAB(JfrEvent):
    """Object promoted directly, outside any promotion buffer."""

    event_type: ClassVar[str] = "jdk.PromoteObjectOutsidePLAB"

    object_size: ByteCount
    tenuring_age: int = Field(ge=0)
    tenured: bool


class PromoteObjectInNewPLAB(JfrEvent):
    """Object whose promotion allocated a new PLAB of ``plab_size`` bytes."""

    event_type: ClassVar[str] = "jdk.PromoteObjectInNewPLAB"

    object_size: ByteCount
    tenuring_age: int = Field(ge=0)
    tenured: bool
    plab_size: ByteCount


class UnrecognizedEvent(BaseModel):
    """Any event whose tag is not modelled here. Carries only the tag.

    A tag that is not a string (null, a number, an object) is kept as ``None``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    event_type: ClassVar[str] = UNRECOGNIZED_TAG

    tag: str | None = Field(default=None, alias="type")

    @field_validator("tag", mode="before")
    @classmethod
    def drop_non_string_tag(cls, value: Any) -> Any:
        return value if isinstance(value, str) else None


KNOWN_EVENT_KINDS: tuple[type[JfrEvent], ...] = (
    TenuringDistribution,
    GCHeapSummary,
    G1HeapSummary,
    G1GarbageCollection,
    OldGarbageCollection,
    YoungGarbageCollection,
    GarbageCollection,
    GCPhasePause,
    PromoteObjectOutsidePLAB,
    PromoteObjectInNewPLAB,
)

EVENT_TYPES: dict[str, type[JfrEvent]] = {kind.event_type: kind for kind in KNOWN_EVENT_KINDS}


def event_tag(data: Any) -> str:
    """Discriminator for ``Event``: the JSON ``type`` tag, or the unrecognized tag."""
    if isinstance(data, dict):
        tag = data.get("type")
    else:
        tag = getattr(data, "event_type", None)
    if isinstance(tag, str) and tag in EVENT_TYPES:
        return tag
    return UNRECOGNIZED_TAG


Event: TypeAlias = Annotated[
    Union[
        Annotated[TenuringDistribution, Tag(TenuringDistribution.event_type)],
        Annotated[GCHeapSummary, Tag(GCHeapSummary.event_type)],
        Annotated[G1HeapSummary, Tag(G1HeapSummary.event_type)],
        Annotated[G1GarbageCollection, Tag(G1GarbageCollection.event_type)],
        Annotated[OldGarbageCollection, Tag(OldGarbageCollection.event_type)],
        Annotated[YoungGarbageCollection, Tag(YoungGarbageCollection.event_type)],
        Annotated[GarbageCollection, Tag(GarbageCollection.event_type)],
        Annotated[GCPhasePause, Tag(GCPhasePause.event_type)],
        Annotated[PromoteObjectOutsidePLAB, Tag(PromoteObjectOutsidePLAB.event_type)],
        Annotated[PromoteObjectInNewPLAB, Tag(PromoteObjectInNewPLAB.event_type)],
        Annotated[UnrecognizedEvent, Tag(UNRECOGNIZED_TAG)],
    ],
    Discriminator(event_tag),
]


def cycle_id(event: JfrEvent | UnrecognizedEvent) -> int | None:
    """GC id of an event; ``None`` only for unrecognized events."""
    if isinstance(event, UnrecognizedEvent):
        return None
    return event.gc_id

"""Shared fixtures: raw ``jfr print --json`` events and recordings."""

import json

import pytest

START_TIME = "2024-07-01T09:20:18.758406750+02:00"


def jfr_event(event_type, **values):
    """One event as printed by ``jfr print --json``."""
    values.setdefault("startTime", START_TIME)
    return {"type": event_type, "values": values}


def jfr_document(events):
    return json.dumps({"recording": {"events": events}})


@pytest.fixture
def make_event():
    return jfr_event


@pytest.fixture
def make_document():
    return jfr_document


@pytest.fixture
def cycle_seven_events():
    """Cycle 7: two tenured promotions (150 bytes) and full heap summaries."""
    return [
        jfr_event("jdk.G1GarbageCollection", gcId=7, type="Normal"),
        jfr_event(
            "jdk.G1HeapSummary",
            gcId=7,
            when="Before GC",
            edenUsedSize=1000,
            edenTotalSize=2048,
            survivorUsedSize=200,
            numberOfRegions=104,
        ),
        jfr_event(
            "jdk.GCHeapSummary",
            gcId=7,
            when="Before GC",
            heapUsed=5000,
            heapSpace={"start": 33176944640, "committedSize": 109051904},
        ),
        jfr_event(
            "jdk.PromoteObjectOutsidePLAB",
            gcId=7,
            objectSize=100,
            tenuringAge=15,
            tenured=True,
            objectClass={"name": "[B"},
        ),
        jfr_event(
            "jdk.PromoteObjectOutsidePLAB",
            gcId=7,
            objectSize=50,
            tenuringAge=15,
            tenured=True,
        ),
        jfr_event(
            "jdk.PromoteObjectOutsidePLAB",
            gcId=7,
            objectSize=8606,
            tenuringAge=0,
            tenured=False,
        ),
        jfr_event(
            "jdk.G1HeapSummary",
            gcId=7,
            when="After GC",
            edenUsedSize=900,
            edenTotalSize=2048,
            survivorUsedSize=150,
        ),
        jfr_event("jdk.GCHeapSummary", gcId=7, when="After GC", heapUsed=4800),
        jfr_event("jdk.YoungGarbageCollection", gcId=7, duration="PT0.027041417S", tenuringThreshold=15),
        jfr_event(
            "jdk.GarbageCollection",
            gcId=7,
            duration="PT0.027041417S",
            name="G1New",
            cause="G1 Evacuation Pause",
            sumOfPauses="PT0.027041417S",
            longestPause="PT0.027041417S",
        ),
        jfr_event("jdk.GCPhasePause", gcId=7, duration="PT0.027S", name="Pause Young (Normal)"),
    ]


@pytest.fixture
def sample_events(cycle_seven_events, make_event):
    """A short recording: cycle 7, a mixed cycle 8, tenuring data and unrelated events."""
    return [
        make_event("jdk.CPULoad", jvmUser=0.1, jvmSystem=0.01, machineTotal=0.5),
        *cycle_seven_events,
        make_event("jdk.TenuringDistribution", gcId=7, age=1, size=64),
        make_event("jdk.TenuringDistribution", gcId=7, age=2, size=128),
        make_event("jdk.G1GarbageCollection", gcId=8, type="Mixed"),
        make_event("jdk.GCHeapSummary", gcId=8, when="Before GC", heapUsed=6000),
        make_event(
            "jdk.G1HeapSummary",
            gcId=8,
            when="Before GC",
            edenUsedSize=2000,
            edenTotalSize=4096,
            survivorUsedSize=100,
        ),
        make_event("jdk.GCHeapSummary", gcId=8, when="After GC", heapUsed=3000),
        make_event(
            "jdk.G1HeapSummary",
            gcId=8,
            when="After GC",
            edenUsedSize=0,
            edenTotalSize=4096,
            survivorUsedSize=300,
        ),
        make_event("jdk.TenuringDistribution", gcId=8, age=1, size=32),
        make_event("jdk.OldGarbageCollection", gcId=8, duration="PT0.004563166S"),
    ]


@pytest.fixture
def sample_document(sample_events):
    return jfr_document(sample_events)


@pytest.fixture
def recording_file(tmp_path, sample_document):
    path = tmp_path / "recording.json"
    path.write_text(sample_document, encoding="utf-8")
    return path

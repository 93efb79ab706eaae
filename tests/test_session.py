"""Tests for the workout session controller."""

import asyncio

import pytest

from bassline.narrative.cues import default_warmup_cues
from bassline.narrative.models import CueTiming, NarrativeCue, StructureTier, TrackAnalysis
from bassline.narrative.scheduler import TriggerScheduler
from bassline.narrative.session import WorkoutSession

LEGS = "We're just warming up the legs here"
CHORUS = "Chorus in 7 seconds"
TRACK = TrackAnalysis(duration=180.0, tempo=120.0)


def _session(clock, sink, **kwargs) -> WorkoutSession:
    # A feed that has not reported yet: track time follows the wall clock.
    kwargs.setdefault("position_feed", lambda: None)
    return WorkoutSession(TriggerScheduler(clock=clock), sink=sink, clock=clock, **kwargs)


@pytest.mark.anyio
async def test_tick_delivers_to_sink(clock):
    """Fired cues should reach the sink in trigger order."""
    fired = []
    session = _session(clock, fired.append)
    structure = await session.start_phase(default_warmup_cues(), track=TRACK, poll=False)
    start = clock.now

    assert structure.tier == StructureTier.TEMPO
    assert session.active_tier == StructureTier.TEMPO
    assert session.tick(start + 7.0) is None
    assert session.tick(start + 8.0) == LEGS
    assert session.tick(start + 38.0) == CHORUS
    assert fired == [LEGS, CHORUS]


@pytest.mark.anyio
async def test_phase_without_track_uses_phase_clock(clock):
    """No track should fall back to the phase clock with allow-listed cues only."""
    fired = []
    session = _session(clock, fired.append)
    cues = [NarrativeCue(id="m", text="Buy our merch now", timing=CueTiming.BAR_START, interval_beats=4)]
    cues += default_warmup_cues()

    assert await session.start_phase(cues, poll=False) is None
    start = clock.now

    assert session.active_tier == StructureTier.PHASE_CLOCK
    assert session.tick(start + 8.0) is None
    assert session.tick(start + 10.0) == LEGS
    assert session.tick(start + 30.0) == CHORUS
    assert fired == [LEGS, CHORUS]


@pytest.mark.anyio
async def test_track_without_position_feed_uses_phase_clock(clock):
    """A track with no playback feed should still be narrated by the phase clock."""
    fired = []
    session = WorkoutSession(TriggerScheduler(clock=clock), sink=fired.append, clock=clock)

    assert await session.start_phase(default_warmup_cues(), track=TRACK, poll=False) is None
    start = clock.now

    assert session.active_tier == StructureTier.PHASE_CLOCK
    assert session.scheduler.track is None
    assert session.tick(start + 8.0) is None
    assert session.tick(start + 10.0) == LEGS
    assert session.tick(start + 30.0) == CHORUS
    assert fired == [LEGS, CHORUS]


@pytest.mark.anyio
async def test_position_feed_drives_track_time(clock):
    """Reported playback position should take precedence over the wall clock."""
    position = {"seconds": None}
    fired = []
    session = _session(clock, fired.append, position_feed=lambda: position["seconds"])
    await session.start_phase(default_warmup_cues(), track=TRACK, poll=False)

    assert session.tick() is None
    position["seconds"] = 8.0
    assert session.tick() == LEGS

    position["seconds"] = None
    clock.advance(38.0)
    assert session.tick() == CHORUS


@pytest.mark.anyio
async def test_sink_failure_does_not_propagate(clock):
    """A failing sink should be logged, not raised, and the cue stays fired."""
    def broken_sink(text):
        raise RuntimeError("display gone")

    session = _session(clock, broken_sink)
    await session.start_phase(default_warmup_cues(), track=TRACK, poll=False)

    assert session.tick(clock.now + 8.0) == LEGS
    assert session.tick(clock.now + 8.0) is None


@pytest.mark.anyio
async def test_polling_task_fires_and_stops(clock):
    """The background poll should fire due cues and stop cleanly."""
    fired = []
    session = _session(clock, fired.append, poll_interval=0.001)
    await session.start_phase(default_warmup_cues(), track=TRACK)
    assert session.running

    clock.advance(8.0)
    for _ in range(100):
        if fired:
            break
        await asyncio.sleep(0.005)
    assert fired == [LEGS]

    await session.stop()
    assert not session.running
    assert session.active_tier is None
    assert session.scheduler.track is None


@pytest.mark.anyio
async def test_new_phase_replaces_previous_schedule(clock):
    """Starting a new phase should cancel the old poll and retime the cues."""
    fired = []
    session = _session(clock, fired.append, poll_interval=0.001)
    await session.start_phase(default_warmup_cues(), track=TRACK)
    first_task = session._task

    clock.advance(5.0)
    await session.start_phase(default_warmup_cues(), track=TrackAnalysis(duration=180.0, tempo=60.0), poll=False)

    assert first_task.cancelled()
    assert not session.running
    assert session.tick(clock.now + 8.0) is None
    assert session.tick(clock.now + 16.0) == LEGS
    await session.stop()

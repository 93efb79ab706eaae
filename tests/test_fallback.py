"""Tests for tier selection and phase-clock narration."""

from bassline.narrative.cues import cues_from_rows, default_warmup_cues
from bassline.narrative.fallback import PhaseClockNarrator, select_tier
from bassline.narrative.models import CueTiming, NarrativeCue, StructureTier, TrackAnalysis

LEGS = "We're just warming up the legs here"
CHORUS = "Chorus in 7 seconds"


def test_select_tier():
    """Tier should follow track id and playback availability."""
    with_id = TrackAnalysis(duration=180.0, tempo=120.0, track_id="abc")
    without_id = TrackAnalysis(duration=180.0, tempo=120.0)

    assert select_tier(with_id, playback_available=True) == StructureTier.ANALYSIS
    assert select_tier(without_id, playback_available=True) == StructureTier.TEMPO
    assert select_tier(with_id, playback_available=False) == StructureTier.PHASE_CLOCK
    assert select_tier(None, playback_available=True) == StructureTier.PHASE_CLOCK


def test_phase_clock_windows(clock):
    """Warm-up cue in [10, 20) s, chorus cue in [30, 40) s, once each."""
    narrator = PhaseClockNarrator(clock=clock)
    narrator.start(default_warmup_cues())
    start = clock.now

    assert narrator.check(start + 9.9) is None
    assert narrator.check(start + 10.0) == LEGS
    assert narrator.check(start + 15.0) is None
    assert narrator.check(start + 25.0) is None
    assert narrator.check(start + 30.0) == CHORUS
    assert narrator.check(start + 35.0) is None


def test_windows_follow_timing_not_store_order(clock):
    """A store listing the chorus cue first must not show it in the warm-up window."""
    cues = cues_from_rows([
        {"id": "b", "text": CHORUS, "timing": "pre_chorus", "sort_order": 1},
        {"id": "a", "text": LEGS, "timing": "bar_start", "interval_beats": 4, "sort_order": 2},
    ])
    assert [c.text for c in cues] == [CHORUS, LEGS]

    narrator = PhaseClockNarrator(clock=clock)
    narrator.start(cues)
    start = clock.now

    assert narrator.check(start + 10.0) == LEGS
    assert narrator.check(start + 30.0) == CHORUS
    assert [(c.text, t) for c, t in narrator.schedule()] == [(LEGS, 10.0), (CHORUS, 30.0)]


def test_cues_without_window_are_ignored(clock):
    """Cues with other timing rules, or a second claimant, never show."""
    cues = [
        NarrativeCue(id="v", text="Verse", timing=CueTiming.VERSE),
        NarrativeCue(id="a", text=LEGS, timing=CueTiming.BAR_START, interval_beats=4),
        NarrativeCue(id="a2", text="Again", timing=CueTiming.BAR_START, interval_beats=4),
    ]
    narrator = PhaseClockNarrator(clock=clock)
    narrator.start(cues)

    assert [c.id for c in narrator.cues] == ["a"]
    assert narrator.check(clock.now + 10.0) == LEGS
    assert narrator.check(clock.now + 30.0) is None


def test_missed_window_is_skipped(clock):
    """A window passed without a poll should not be shown late."""
    narrator = PhaseClockNarrator(clock=clock)
    narrator.start(default_warmup_cues())
    start = clock.now

    assert narrator.check(start + 25.0) is None
    assert narrator.check(start + 31.0) == CHORUS
    assert narrator.check(start + 45.0) is None


def test_custom_windows(clock):
    """With a single window only the warm-up cue can show."""
    narrator = PhaseClockNarrator(windows=((1.0, 2.0),), clock=clock)
    narrator.start(default_warmup_cues())

    assert [c.text for c in narrator.cues] == [LEGS]
    assert narrator.check(clock.now + 1.5) == LEGS
    assert narrator.check(clock.now + 1.6) is None


def test_uses_clock_when_now_omitted(clock):
    """check() without an explicit time should read the injected clock."""
    narrator = PhaseClockNarrator(clock=clock)
    narrator.start(default_warmup_cues())
    clock.advance(12.0)
    assert narrator.check() == LEGS


def test_reset_stops_narration(clock):
    """After reset nothing is assigned and nothing fires."""
    narrator = PhaseClockNarrator(clock=clock)
    narrator.start(default_warmup_cues())
    narrator.reset()

    assert narrator.cues == []
    assert narrator.check(clock.now + 10.0) is None

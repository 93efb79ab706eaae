"""Workout session controller: owns the scheduler and the polling task."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Callable

from bassline.config import settings
from bassline.narrative.fallback import PhaseClockNarrator, select_tier
from bassline.narrative.models import (
    Bar,
    MusicalStructure,
    NarrativeCue,
    Section,
    StructureTier,
    TrackAnalysis,
)
from bassline.narrative.scheduler import TriggerScheduler

logger = logging.getLogger(__name__)

NarrationSink = Callable[[str], None]
PositionFeed = Callable[[], "float | None"]


class WorkoutSession:
    """One active timing session at a time.

    A phase with a track and a *position_feed* is timed against the music
    (analysis or tempo tier). Track position comes from the feed when it
    reports one, otherwise from wall-clock time since the track was set. A
    phase without a track, or a session without a feed, falls back to the
    phase clock.
    """

    def __init__(
        self,
        scheduler: TriggerScheduler,
        sink: NarrationSink,
        position_feed: PositionFeed | None = None,
        phase_clock: PhaseClockNarrator | None = None,
        poll_interval: float | None = None,
        clock=time.monotonic,
    ):
        self.scheduler = scheduler
        self.sink = sink
        self.position_feed = position_feed
        self.phase_clock = phase_clock or PhaseClockNarrator(clock=clock)
        self.poll_interval = settings.poll_interval_seconds if poll_interval is None else poll_interval
        self._clock = clock
        self._task: asyncio.Task | None = None
        self._tier: StructureTier | None = None

    @property
    def active_tier(self) -> StructureTier | None:
        return self._tier

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start_phase(
        self,
        cues: list[NarrativeCue],
        track: TrackAnalysis | None = None,
        bars: list[Bar] | None = None,
        sections: list[Section] | None = None,
        poll: bool = True,
    ) -> MusicalStructure | None:
        """Reset, load *cues* and start timing; returns the track structure if any."""
        await self._cancel_task()
        self.scheduler.reset()
        self.phase_clock.reset()

        self._tier = select_tier(track, playback_available=self.position_feed is not None)
        structure = None
        if self._tier == StructureTier.PHASE_CLOCK:
            reason = "No track for this phase" if track is None else "No playback position feed"
            logger.info(f"{reason}, using phase-clock narration")
            self.phase_clock.start(self.scheduler.allow_list.filter(cues))
        else:
            self.scheduler.load(cues)
            structure = await self.scheduler.set_track(track, bars=bars, sections=sections)
            if structure is not None:
                self._tier = structure.tier

        if poll:
            self._task = asyncio.create_task(self._poll())
        return structure

    def _track_now(self, now: float) -> float:
        """Clock value whose distance from session start is the track position."""
        if self.position_feed is None:
            return now
        position = self.position_feed()
        start = self.scheduler.session_start
        if position is None or start is None:
            return now
        return start + position

    def tick(self, now: float | None = None) -> str | None:
        """Run one poll step and deliver any fired cue to the sink."""
        now = self._clock() if now is None else now
        if self._tier == StructureTier.PHASE_CLOCK:
            text = self.phase_clock.check(now)
        else:
            text = self.scheduler.check_triggers(self._track_now(now))

        if text is not None:
            try:
                self.sink(text)
            except Exception:
                logger.exception("Narration sink failed")
        return text

    async def _poll(self) -> None:
        while True:
            self.tick()
            await asyncio.sleep(self.poll_interval)

    async def _cancel_task(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def stop(self) -> None:
        """Cancel polling and discard all timing state."""
        await self._cancel_task()
        self.scheduler.reset()
        self.phase_clock.reset()
        self._tier = None

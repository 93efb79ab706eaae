"""Trigger scheduler: maps cues to track offsets and fires them on a poll clock."""

import dataclasses
import logging
import time

from bassline.narrative.cues import CueAllowList
from bassline.narrative.models import (
    Bar,
    CueTiming,
    MusicalStructure,
    NarrativeCue,
    Section,
    TrackAnalysis,
    UpcomingNarrative,
)
from bassline.narrative.structure import StructureResolver

logger = logging.getLogger(__name__)


class TriggerScheduler:
    """Fires each loaded cue at most once, in load order, one per poll.

    Owned by a single workout session. ``reset()`` must be called on phase or
    track change so trigger times never carry over to another track.
    """

    def __init__(
        self,
        resolver: StructureResolver | None = None,
        allow_list: CueAllowList | None = None,
        clock=time.monotonic,
    ):
        self.resolver = resolver or StructureResolver()
        self.allow_list = allow_list or CueAllowList()
        self._clock = clock
        self._cues: list[NarrativeCue] = []
        self._track: TrackAnalysis | None = None
        self._structure: MusicalStructure | None = None
        self._session_start: float | None = None
        self._four_bar_fired = False

    @property
    def cues(self) -> list[NarrativeCue]:
        return list(self._cues)

    @property
    def track(self) -> TrackAnalysis | None:
        return self._track

    @property
    def structure(self) -> MusicalStructure | None:
        return self._structure

    @property
    def session_start(self) -> float | None:
        return self._session_start

    def load(self, cues: list[NarrativeCue]) -> None:
        self._cues = [
            dataclasses.replace(c, triggered=False, trigger_time=None) for c in cues
        ]
        logger.info(f"Loaded {len(self._cues)} narrative cues")

    async def set_track(
        self,
        track: TrackAnalysis,
        bars: list[Bar] | None = None,
        sections: list[Section] | None = None,
    ) -> MusicalStructure | None:
        """Start timing *track* and assign trigger times to the loaded cues.

        Returns the resolved structure, or None if the scheduler was reset
        while resolution was pending.
        """
        self._track = track
        self._structure = None
        self._session_start = self._clock()
        self._four_bar_fired = False
        for cue in self._cues:
            cue.triggered = False
            cue.trigger_time = None

        structure = await self.resolver.resolve(track, bars=bars, sections=sections)
        if self._track is not track:
            logger.info("Track changed during structure resolution; discarding result")
            return None

        self._structure = structure
        self._assign_trigger_times(structure)
        return structure

    def _assign_trigger_times(self, structure: MusicalStructure) -> None:
        for cue in self._cues:
            if cue.is_four_bar_cue:
                cue.trigger_time = structure.fourth_bar_end
            elif cue.timing == CueTiming.PRE_CHORUS:
                cue.trigger_time = structure.chorus_approach

            if cue.trigger_time is not None:
                logger.debug(f"Cue {cue.text!r} scheduled at {cue.trigger_time:.2f}s")
            else:
                logger.debug(f"Cue {cue.text!r} ({cue.timing}) has no trigger time")

    def elapsed(self, now: float | None = None) -> float | None:
        if self._session_start is None:
            return None
        now = self._clock() if now is None else now
        return now - self._session_start

    def check_triggers(self, now: float | None = None) -> str | None:
        """Return the text of the first cue due at *now*, or None."""
        if self._track is None or self._structure is None:
            return None
        elapsed = self.elapsed(now)

        for cue in self._cues:
            if cue.triggered or cue.trigger_time is None or elapsed < cue.trigger_time:
                continue

            if not self.allow_list.permits(cue.text):
                logger.warning(f"Suppressing cue {cue.id} with untrusted text {cue.text!r}")
                cue.triggered = True
                continue

            if cue.is_four_bar_cue:
                if self._four_bar_fired:
                    continue
                self._four_bar_fired = True

            cue.triggered = True
            logger.info(f"Triggering {cue.text!r} at {elapsed:.1f}s ({cue.timing.value})")
            return cue.text

        return None

    def get_next_narrative(self, now: float | None = None) -> UpcomingNarrative | None:
        if self._track is None or self._structure is None:
            return None
        elapsed = self.elapsed(now)

        upcoming = [
            c for c in self._cues
            if not c.triggered and c.trigger_time is not None and c.trigger_time > elapsed
        ]
        if not upcoming:
            return None
        nxt = min(upcoming, key=lambda c: c.trigger_time)
        return UpcomingNarrative(text=nxt.text, time_until=nxt.trigger_time - elapsed)

    def reset(self) -> None:
        self._cues = []
        self._track = None
        self._structure = None
        self._session_start = None
        self._four_bar_fired = False

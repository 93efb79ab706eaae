"""Phase-clock narration for sessions without a playback position feed.

This is the last fallback tier: cues are shown in fixed windows measured from
phase start, with no reference to the music at all. The first window belongs
to the four-bar warm-up cue and the second to the pre-chorus cue, whatever
order the cue store lists them in.
"""

import logging
import time

from bassline.config import settings
from bassline.narrative.models import CueTiming, NarrativeCue, StructureTier, TrackAnalysis

logger = logging.getLogger(__name__)


def select_tier(track: TrackAnalysis | None, playback_available: bool) -> StructureTier:
    """Most precise tier the current inputs can support.

    Tier 1 additionally needs the analysis fetch to succeed; the resolver
    degrades to tier 2 on its own when it does not.
    """
    if track is None or not playback_available:
        return StructureTier.PHASE_CLOCK
    if track.track_id:
        return StructureTier.ANALYSIS
    return StructureTier.TEMPO


def window_index(cue: NarrativeCue) -> int | None:
    """Phase-clock window a cue is shown in, by its timing rule."""
    if cue.is_four_bar_cue:
        return 0
    if cue.timing == CueTiming.PRE_CHORUS:
        return 1
    return None


class PhaseClockNarrator:
    """Shows each cue during its window, once per phase.

    A window that passes without a poll is skipped; the cue is not shown late.
    """

    def __init__(
        self,
        windows: tuple[tuple[float, float], ...] | None = None,
        clock=time.monotonic,
    ):
        self.windows = tuple(settings.phase_clock_windows if windows is None else windows)
        self._clock = clock
        self._assigned: dict[int, NarrativeCue] = {}
        self._shown: set[int] = set()
        self._phase_start: float | None = None

    @property
    def cues(self) -> list[NarrativeCue]:
        """Cues that own a window, in window order."""
        return [self._assigned[i] for i in sorted(self._assigned)]

    def schedule(self) -> list[tuple[NarrativeCue, float]]:
        """(cue, window start) pairs in window order."""
        return [(self._assigned[i], self.windows[i][0]) for i in sorted(self._assigned)]

    def start(self, cues: list[NarrativeCue], now: float | None = None) -> None:
        self._assigned = {}
        self._shown = set()
        self._phase_start = self._clock() if now is None else now

        for cue in cues:
            index = window_index(cue)
            if index is None or index >= len(self.windows):
                logger.info(f"Cue {cue.id!r} has no phase-clock window")
                continue
            if index in self._assigned:
                logger.warning(f"Cue {cue.id!r} ignored, window {index} already taken by {self._assigned[index].id!r}")
                continue
            self._assigned[index] = cue

    def check(self, now: float | None = None) -> str | None:
        if self._phase_start is None:
            return None
        now = self._clock() if now is None else now
        elapsed = now - self._phase_start

        for i in sorted(self._assigned):
            if i in self._shown:
                continue
            start, end = self.windows[i]
            if start <= elapsed < end:
                self._shown.add(i)
                cue = self._assigned[i]
                logger.info(f"Phase clock: showing {cue.text!r} at {elapsed:.1f}s")
                return cue.text
        return None

    def reset(self) -> None:
        self._assigned = {}
        self._shown = set()
        self._phase_start = None

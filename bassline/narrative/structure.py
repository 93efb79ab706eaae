"""Musical structure resolution with tiered fallback.

Tier 1 uses detailed analysis (bars + classified sections). Tier 2 estimates
the same landmarks from tempo and duration alone. The resolver picks the most
precise tier the available inputs support and never raises on a failed
analysis fetch.
"""

import logging

import numpy as np

from bassline.config import settings
from bassline.narrative.cache import TrackAnalysisCache
from bassline.narrative.models import (
    AnalysisData,
    Bar,
    Beat,
    MusicalStructure,
    Section,
    StructureTier,
    TrackAnalysis,
)
from bassline.narrative.sections import classify_sections, first_chorus

logger = logging.getLogger(__name__)


def fourth_bar_end_from_bars(bars: list[Bar]) -> float | None:
    """End of the Nth bar, or None when there are fewer than N bars."""
    n = settings.bars_before_first_cue
    if len(bars) < n:
        return None
    bar = bars[n - 1]
    return bar.start + bar.duration


def fourth_bar_end_from_tempo(tempo: float) -> float:
    seconds_per_beat = 60.0 / tempo
    return seconds_per_beat * settings.beats_per_bar * settings.bars_before_first_cue


def estimated_chorus_start(duration: float) -> float:
    return duration * settings.chorus_duration_fraction


def chorus_approach(chorus_start: float) -> float:
    return max(0.0, chorus_start - settings.chorus_lead_seconds)


def estimate_tempo_from_beats(beats: list[Beat], min_bpm: float = 40, max_bpm: float = 300) -> float | None:
    """Estimate BPM from the median inter-beat interval."""
    if len(beats) < 3:
        return None

    times = np.array([b.start for b in beats])
    ibis = np.diff(times)
    valid = ibis[(ibis > 60.0 / max_bpm) & (ibis < 60.0 / min_bpm)]
    if len(valid) < 2:
        return None

    return round(60.0 / float(np.median(valid)), 1)


def _effective_tempo(tempo: float | None) -> float:
    if tempo is None or tempo <= 0:
        logger.warning(f"Invalid tempo {tempo!r}, assuming {settings.default_tempo} BPM")
        return settings.default_tempo
    return tempo


def structure_from_analysis(
    track: TrackAnalysis,
    bars: list[Bar],
    sections: list[Section],
    duration: float | None = None,
    tempo: float | None = None,
) -> MusicalStructure:
    """Tier 1: landmarks from bars and classified sections."""
    duration = duration if duration and duration > 0 else track.duration
    classified = classify_sections(sections)

    chorus = first_chorus(classified)
    if chorus is not None:
        chorus_start = chorus.start
    else:
        logger.info("No chorus section detected, estimating from duration")
        chorus_start = estimated_chorus_start(duration)

    return MusicalStructure(
        duration=duration,
        tempo=tempo if tempo and tempo > 0 else track.tempo,
        time_signature=track.time_signature,
        bars=list(bars),
        sections=classified,
        fourth_bar_end=fourth_bar_end_from_bars(bars),
        chorus_start=chorus_start,
        chorus_approach=chorus_approach(chorus_start),
        tier=StructureTier.ANALYSIS,
        track_id=track.track_id,
    )


def structure_from_tempo(track: TrackAnalysis) -> MusicalStructure:
    """Tier 2: landmarks from tempo and duration only."""
    tempo = _effective_tempo(track.tempo)
    chorus_start = estimated_chorus_start(track.duration)
    return MusicalStructure(
        duration=track.duration,
        tempo=tempo,
        time_signature=track.time_signature,
        fourth_bar_end=fourth_bar_end_from_tempo(tempo),
        chorus_start=chorus_start,
        chorus_approach=chorus_approach(chorus_start),
        tier=StructureTier.TEMPO,
        track_id=track.track_id,
    )


def describe_structure(structure: MusicalStructure, max_bars: int = 8) -> str:
    """Human-readable dump of a structure for debug logging."""

    def fmt(value: float | None) -> str:
        return f"{value:.2f}s" if value is not None else "n/a"

    lines = [
        f"Track: {structure.track_id or '-'} ({structure.tier.value})",
        f"Duration: {structure.duration:.2f}s",
        f"Tempo: {structure.tempo} BPM",
        f"Time signature: {structure.time_signature}/4",
    ]
    if structure.bars:
        lines.append("Bars:")
        for i, bar in enumerate(structure.bars[:max_bars]):
            lines.append(f"  {i + 1}: {bar.start:.2f}s - {bar.end:.2f}s ({bar.duration:.2f}s)")
    if structure.sections:
        lines.append("Sections:")
        for i, s in enumerate(structure.sections):
            lines.append(
                f"  {i + 1}. {s.classification.value.upper()}: {s.start:.2f}s - {s.end:.2f}s "
                f"(loudness {s.loudness:.1f}dB, confidence {s.confidence:.2f})"
            )
    lines.append(f"Fourth bar end: {fmt(structure.fourth_bar_end)}")
    lines.append(f"Chorus start: {fmt(structure.chorus_start)}")
    lines.append(f"Chorus approach: {fmt(structure.chorus_approach)}")
    return "\n".join(lines)


class StructureResolver:
    """Resolves a track's MusicalStructure from the best available inputs."""

    def __init__(self, provider=None, cache: TrackAnalysisCache | None = None):
        self.provider = provider  # AnalysisProvider | None
        self.cache = cache

    async def resolve(
        self,
        track: TrackAnalysis,
        bars: list[Bar] | None = None,
        sections: list[Section] | None = None,
    ) -> MusicalStructure:
        """Resolve *track* using explicit analysis, fetched analysis or tempo.

        Explicit *bars* and *sections* take precedence over the provider.
        """
        if bars is not None or sections is not None:
            structure = structure_from_analysis(track, bars or [], sections or [])
        else:
            analysis = await self._load_analysis(track)
            if analysis is not None:
                tempo = analysis.tempo or estimate_tempo_from_beats(analysis.beats)
                structure = structure_from_analysis(
                    track, analysis.bars, analysis.sections,
                    duration=analysis.duration, tempo=tempo,
                )
            else:
                structure = structure_from_tempo(track)

        logger.info(
            f"Resolved structure ({structure.tier.value}): "
            f"fourth_bar_end={structure.fourth_bar_end}, "
            f"chorus_start={structure.chorus_start}, "
            f"chorus_approach={structure.chorus_approach}"
        )
        logger.debug(describe_structure(structure))
        return structure

    async def _load_analysis(self, track: TrackAnalysis) -> AnalysisData | None:
        if not track.track_id:
            logger.info("No track id, using tempo-based timing")
            return None

        if self.cache is not None:
            cached = self.cache.get(track.track_id)
            if cached is not None:
                return cached

        if self.provider is None:
            return None

        try:
            analysis = await self.provider.fetch_analysis(track.track_id)
        except Exception as e:
            logger.warning(f"Analysis fetch for {track.track_id} failed: {e}; falling back to tempo timing")
            return None

        if analysis is None:
            logger.warning(f"Analysis unavailable for {track.track_id}, falling back to tempo timing")
            return None
        if not analysis.bars and not analysis.sections:
            logger.warning(f"Analysis for {track.track_id} has no bars or sections, falling back to tempo timing")
            return None

        if self.cache is not None:
            self.cache.put(track.track_id, analysis)
        return analysis

"""Core data models for narrative timing."""

from dataclasses import dataclass, field
from enum import Enum


class SectionType(str, Enum):
    INTRO = "intro"
    VERSE = "verse"
    CHORUS = "chorus"
    BRIDGE = "bridge"
    OUTRO = "outro"
    UNKNOWN = "unknown"


class CueTiming(str, Enum):
    """Timing rule tags a cue can carry."""
    BAR_START = "bar_start"
    CHORUS = "chorus"
    VERSE = "verse"
    PRE_CHORUS = "pre_chorus"
    BUILD_UP = "build_up"
    DROP = "drop"


class StructureTier(str, Enum):
    """Precision level a MusicalStructure was derived at."""
    ANALYSIS = "analysis"  # bars + classified sections
    TEMPO = "tempo"  # tempo/duration estimate
    PHASE_CLOCK = "phase_clock"  # fixed offsets from phase start


@dataclass(frozen=True)
class TrackAnalysis:
    """Track metadata known at phase start."""
    duration: float  # seconds
    tempo: float  # BPM
    time_signature: int = 4
    track_id: str | None = None


@dataclass(frozen=True)
class TimeInterval:
    """A bar, beat or tatum from detailed analysis."""
    start: float  # seconds
    duration: float  # seconds
    confidence: float = 1.0  # 0.0-1.0

    @property
    def end(self) -> float:
        return self.start + self.duration


Bar = TimeInterval
Beat = TimeInterval
Tatum = TimeInterval


@dataclass
class Section:
    """A structurally distinct part of a song."""
    start: float
    duration: float
    confidence: float = 0.0
    loudness: float = 0.0  # dB
    tempo: float = 0.0
    key: int = -1
    mode: int = -1
    time_signature_confidence: float = 0.0
    classification: SectionType = SectionType.UNKNOWN

    @property
    def end(self) -> float:
        return self.start + self.duration


@dataclass
class AnalysisData:
    """Detailed analysis of one track, as delivered by a provider."""
    bars: list[Bar] = field(default_factory=list)
    beats: list[Beat] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    tatums: list[Tatum] = field(default_factory=list)
    duration: float = 0.0
    tempo: float = 0.0
    time_signature: int = 4


@dataclass
class MusicalStructure:
    """Landmarks derived for one track."""
    duration: float
    tempo: float
    time_signature: int = 4
    bars: list[Bar] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    fourth_bar_end: float | None = None
    chorus_start: float | None = None
    chorus_approach: float | None = None
    tier: StructureTier = StructureTier.TEMPO
    track_id: str | None = None


@dataclass
class NarrativeCue:
    """A coaching line tied to a timing rule."""
    id: str
    text: str
    timing: CueTiming | None
    interval_beats: int | None = None
    triggered: bool = False
    trigger_time: float | None = None  # seconds since track start

    @property
    def is_four_bar_cue(self) -> bool:
        return self.timing == CueTiming.BAR_START and self.interval_beats == 4


@dataclass
class UpcomingNarrative:
    text: str
    time_until: float

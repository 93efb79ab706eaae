"""Pydantic request/response models for API."""

from pydantic import BaseModel, Field


class TrackRequest(BaseModel):
    duration: float
    tempo: float
    time_signature: int = 4
    track_id: str | None = None


class IntervalModel(BaseModel):
    start: float
    duration: float
    confidence: float = 1.0


class SectionModel(BaseModel):
    start: float
    duration: float
    confidence: float = 0.0
    loudness: float = 0.0
    tempo: float = 0.0
    key: int = -1
    mode: int = -1
    time_signature_confidence: float = 0.0


class ClassifiedSectionResponse(SectionModel):
    classification: str


class StructureRequest(BaseModel):
    track: TrackRequest
    bars: list[IntervalModel] | None = None
    sections: list[SectionModel] | None = None


class ClassifyRequest(BaseModel):
    sections: list[SectionModel]


class StructureResponse(BaseModel):
    duration: float
    tempo: float
    time_signature: int = 4
    tier: str
    track_id: str | None = None
    bar_count: int = 0
    sections: list[ClassifiedSectionResponse] = []
    fourth_bar_end: float | None = None
    chorus_start: float | None = None
    chorus_approach: float | None = None


class CueModel(BaseModel):
    id: str
    text: str
    timing: str | None = None
    interval_beats: int | None = None


# WebSocket message types

class StartMessage(BaseModel):
    type: str = "start"
    track: TrackRequest | None = None
    cues: list[CueModel] = Field(default_factory=list)


class ScheduledCue(BaseModel):
    text: str
    trigger_time: float | None = None


class ScheduleMessage(BaseModel):
    type: str = "schedule"
    tier: str
    cues: list[ScheduledCue]


class NarrationMessage(BaseModel):
    type: str = "narration"
    text: str

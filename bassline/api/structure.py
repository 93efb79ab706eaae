"""Structure resolution and section classification endpoints."""

from fastapi import APIRouter, HTTPException

from bassline.api.schemas import (
    ClassifiedSectionResponse,
    ClassifyRequest,
    SectionModel,
    StructureRequest,
    StructureResponse,
    TrackRequest,
)
from bassline.narrative.cache import TrackAnalysisCache
from bassline.narrative.models import MusicalStructure, Section, TimeInterval, TrackAnalysis
from bassline.narrative.sections import classify_sections
from bassline.narrative.structure import StructureResolver
from bassline.providers.analysis import SpotifyAnalysisProvider

router = APIRouter()

_analysis_cache = TrackAnalysisCache()


def build_resolver() -> StructureResolver:
    return StructureResolver(provider=SpotifyAnalysisProvider(), cache=_analysis_cache)


def track_from_request(req: TrackRequest) -> TrackAnalysis:
    if req.duration <= 0:
        raise HTTPException(400, "Track duration must be positive")
    if req.tempo <= 0:
        raise HTTPException(400, "Track tempo must be positive")
    return TrackAnalysis(
        duration=req.duration,
        tempo=req.tempo,
        time_signature=req.time_signature,
        track_id=req.track_id,
    )


def section_from_model(s: SectionModel) -> Section:
    return Section(**s.model_dump())


def section_to_response(s: Section) -> ClassifiedSectionResponse:
    return ClassifiedSectionResponse(
        start=s.start,
        duration=s.duration,
        confidence=s.confidence,
        loudness=s.loudness,
        tempo=s.tempo,
        key=s.key,
        mode=s.mode,
        time_signature_confidence=s.time_signature_confidence,
        classification=s.classification.value,
    )


def structure_to_response(structure: MusicalStructure) -> StructureResponse:
    return StructureResponse(
        duration=structure.duration,
        tempo=structure.tempo,
        time_signature=structure.time_signature,
        tier=structure.tier.value,
        track_id=structure.track_id,
        bar_count=len(structure.bars),
        sections=[section_to_response(s) for s in structure.sections],
        fourth_bar_end=structure.fourth_bar_end,
        chorus_start=structure.chorus_start,
        chorus_approach=structure.chorus_approach,
    )


@router.post("/structure", response_model=StructureResponse)
async def resolve_structure(req: StructureRequest):
    """Resolve narrative landmarks for a track."""
    track = track_from_request(req.track)
    bars = [TimeInterval(**b.model_dump()) for b in req.bars] if req.bars is not None else None
    sections = [section_from_model(s) for s in req.sections] if req.sections is not None else None

    structure = await build_resolver().resolve(track, bars=bars, sections=sections)
    return structure_to_response(structure)


@router.post("/sections/classify", response_model=list[ClassifiedSectionResponse])
async def classify(req: ClassifyRequest):
    """Label sections as intro/verse/chorus/bridge/outro/unknown."""
    classified = classify_sections([section_from_model(s) for s in req.sections])
    return [section_to_response(s) for s in classified]

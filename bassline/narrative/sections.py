"""Heuristic section labelling from loudness, confidence and position."""

import dataclasses
import logging

from bassline.config import settings
from bassline.narrative.models import Section, SectionType

logger = logging.getLogger(__name__)


def classify_section(section: Section, index: int, total: int) -> SectionType:
    """Label one section by its position and loudness.

    First is always intro and last is always outro, whatever the audio says.
    A single-section track is an intro. Chorus is only considered at the
    fixed positions 1, 3 and 5; this is a rough heuristic and mislabels
    songs that open on the chorus.
    """
    if index == 0:
        return SectionType.INTRO
    if index == total - 1:
        return SectionType.OUTRO

    is_loud = section.loudness > settings.chorus_min_loudness_db
    is_confident = section.confidence > settings.chorus_min_confidence
    if is_loud and is_confident and index in settings.chorus_positions:
        return SectionType.CHORUS

    if section.loudness < settings.quiet_max_loudness_db:
        return SectionType.VERSE if index % 2 == 1 else SectionType.BRIDGE

    return SectionType.UNKNOWN


def classify_sections(sections: list[Section]) -> list[Section]:
    """Return copies of *sections* with ``classification`` filled in."""
    total = len(sections)
    classified = [
        dataclasses.replace(s, classification=classify_section(s, i, total))
        for i, s in enumerate(sections)
    ]
    if classified:
        logger.debug("Sections: " + ", ".join(s.classification.value for s in classified))
    return classified


def first_chorus(sections: list[Section]) -> Section | None:
    for s in sections:
        if s.classification == SectionType.CHORUS:
            return s
    return None

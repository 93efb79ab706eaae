"""Narrative timing subpackage."""

from bassline.narrative.scheduler import TriggerScheduler
from bassline.narrative.session import WorkoutSession
from bassline.narrative.structure import StructureResolver

__all__ = [
    "StructureResolver",
    "TriggerScheduler",
    "WorkoutSession",
]

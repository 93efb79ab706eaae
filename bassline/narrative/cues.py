"""Cue store boundary and content allow-listing."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Protocol

from bassline.config import settings
from bassline.narrative.models import CueTiming, NarrativeCue

logger = logging.getLogger(__name__)


class CueAllowList:
    """Set of cue texts trusted for narration."""

    def __init__(self, texts: Iterable[str] | None = None):
        self.texts = frozenset(settings.allowed_cue_texts if texts is None else texts)

    def permits(self, text: str) -> bool:
        return text in self.texts

    def filter(self, cues: list[NarrativeCue]) -> list[NarrativeCue]:
        kept = []
        for cue in cues:
            if self.permits(cue.text):
                kept.append(cue)
            else:
                logger.warning(f"Dropping untrusted cue {cue.id}: {cue.text!r}")
        return kept


class CueStore(Protocol):
    def load_cues(self, workout_type: str, phase_type: str) -> list[NarrativeCue]:
        ...


def parse_timing(raw: Any) -> CueTiming | None:
    try:
        return CueTiming(raw)
    except ValueError:
        logger.warning(f"Unknown cue timing {raw!r}; cue will never fire")
        return None


def cue_from_row(row: dict) -> NarrativeCue:
    interval = row.get("interval_beats")
    return NarrativeCue(
        id=str(row["id"]),
        text=str(row["text"]),
        timing=parse_timing(row.get("timing")),
        interval_beats=int(interval) if interval is not None else None,
    )


def cues_from_rows(rows: list[dict]) -> list[NarrativeCue]:
    """Build cues from store rows ordered by ``sort_order``."""
    ordered = sorted(rows, key=lambda r: r.get("sort_order", 0))
    return [cue_from_row(r) for r in ordered]


def default_warmup_cues() -> list[NarrativeCue]:
    return [
        NarrativeCue(
            id="warmup-4-bars",
            text="We're just warming up the legs here",
            timing=CueTiming.BAR_START,
            interval_beats=4,
        ),
        NarrativeCue(
            id="warmup-pre-chorus",
            text="Chorus in 7 seconds",
            timing=CueTiming.PRE_CHORUS,
        ),
    ]


class InMemoryCueStore:
    """Rows keyed by ``(workout_type, phase_type)``."""

    def __init__(self, rows: dict[tuple[str, str], list[dict]] | None = None):
        self.rows = dict(rows or {})

    def load_cues(self, workout_type: str, phase_type: str) -> list[NarrativeCue]:
        return cues_from_rows(self.rows.get((workout_type, phase_type), []))


class JsonCueStore:
    """Cue rows from a JSON file shaped ``{workout: {phase: [rows]}}``."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load_cues(self, workout_type: str, phase_type: str) -> list[NarrativeCue]:
        data = json.loads(self.path.read_text())
        rows = data.get(workout_type, {}).get(phase_type, [])
        cues = cues_from_rows(rows)
        logger.info(f"Loaded {len(cues)} cues for {workout_type}/{phase_type} from {self.path}")
        return cues


class AllowListedCueStore:
    """Wraps a store and drops cues whose text is not allow-listed."""

    def __init__(self, store: CueStore, allow_list: CueAllowList | None = None):
        self.store = store
        self.allow_list = allow_list or CueAllowList()

    def load_cues(self, workout_type: str, phase_type: str) -> list[NarrativeCue]:
        return self.allow_list.filter(self.store.load_cues(workout_type, phase_type))

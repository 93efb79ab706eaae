#!/usr/bin/env python3
"""Simulate one workout phase offline and print when each cue fires.

Steps a fake clock through the track at the poll interval, so a 3-minute
track is simulated instantly.

Usage:
    python scripts/simulate_phase.py --tempo 120 --duration 180
    python scripts/simulate_phase.py --analysis analysis.json --track-id abc
    python scripts/simulate_phase.py --cues cues.json --workout spinning --phase warmup
    python scripts/simulate_phase.py --no-track          # phase-clock fallback
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

logging.basicConfig(level=logging.WARNING, format="%(name)s %(levelname)s: %(message)s")

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from bassline.config import settings
from bassline.narrative.cues import JsonCueStore, default_warmup_cues
from bassline.narrative.models import TrackAnalysis
from bassline.narrative.scheduler import TriggerScheduler
from bassline.narrative.session import WorkoutSession
from bassline.narrative.structure import StructureResolver, describe_structure
from bassline.providers.analysis import StaticAnalysisProvider, parse_analysis


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def main():
    parser = argparse.ArgumentParser(description="Simulate narration timing for one phase")
    parser.add_argument("--tempo", type=float, default=settings.default_tempo)
    parser.add_argument("--duration", type=float, default=180.0)
    parser.add_argument("--track-id", default=None)
    parser.add_argument("--analysis", type=Path, help="audio-analysis JSON for --track-id")
    parser.add_argument("--cues", type=Path, help="cue store JSON file")
    parser.add_argument("--workout", default="spinning")
    parser.add_argument("--phase", default="warmup")
    parser.add_argument("--no-track", action="store_true", help="simulate without playback")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger("bassline").setLevel(logging.DEBUG)

    analyses = {}
    track_id = args.track_id
    if args.analysis:
        analysis = parse_analysis(json.loads(args.analysis.read_text()))
        if analysis is None:
            print(f"Could not parse {args.analysis}, continuing without analysis")
        else:
            track_id = track_id or args.analysis.stem
            analyses[track_id] = analysis

    if args.cues:
        cues = JsonCueStore(args.cues).load_cues(args.workout, args.phase)
    else:
        cues = default_warmup_cues()

    clock = FakeClock()
    fired = []
    scheduler = TriggerScheduler(
        resolver=StructureResolver(provider=StaticAnalysisProvider(analyses)),
        clock=clock,
    )

    track = None
    if not args.no_track:
        track = TrackAnalysis(duration=args.duration, tempo=args.tempo, track_id=track_id)

    # The fake clock starts at 0 with the track, so it doubles as the playback position.
    feed = None if track is None else clock
    session = WorkoutSession(scheduler, sink=fired.append, position_feed=feed, clock=clock)

    structure = asyncio.run(session.start_phase(cues, track=track, poll=False))
    print(f"Tier: {session.active_tier.value}")
    if structure is not None:
        print(describe_structure(structure))
    print()

    step = settings.poll_interval_seconds
    n_steps = int(args.duration / step) + 1
    for i in range(n_steps):
        clock.now = round(i * step, 6)
        text = session.tick()
        if text is not None:
            print(f"{clock.now:7.1f}s  {text}")

    if not fired:
        print("No cues fired.")


if __name__ == "__main__":
    main()

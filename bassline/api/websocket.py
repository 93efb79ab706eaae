"""WebSocket endpoint for live workout narration."""

import asyncio
import contextlib
import logging

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from bassline.api.schemas import (
    NarrationMessage,
    ScheduledCue,
    ScheduleMessage,
    StartMessage,
)
from bassline.api.structure import build_resolver, track_from_request
from bassline.narrative.cues import default_warmup_cues, parse_timing
from bassline.narrative.models import NarrativeCue, StructureTier
from bassline.narrative.scheduler import TriggerScheduler
from bassline.narrative.session import WorkoutSession

logger = logging.getLogger(__name__)

router = APIRouter()


def _cues_from_message(msg: StartMessage) -> list[NarrativeCue]:
    if not msg.cues:
        return default_warmup_cues()
    return [
        NarrativeCue(
            id=c.id,
            text=c.text,
            timing=parse_timing(c.timing),
            interval_beats=c.interval_beats,
        )
        for c in msg.cues
    ]


def _schedule_message(session: WorkoutSession) -> dict:
    if session.active_tier == StructureTier.PHASE_CLOCK:
        cues = [ScheduledCue(text=c.text, trigger_time=start) for c, start in session.phase_clock.schedule()]
    else:
        cues = [ScheduledCue(text=c.text, trigger_time=c.trigger_time) for c in session.scheduler.cues]
    return ScheduleMessage(tier=session.active_tier.value, cues=cues).model_dump()


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        text = await queue.get()
        await websocket.send_json(NarrationMessage(text=text).model_dump())


@router.websocket("/ws/narration")
async def live_narration(websocket: WebSocket):
    """Live narration via WebSocket.

    Protocol:
    - Client sends JSON messages:
      - {"type": "start", "track": {...} | null, "cues": [...]}
      - {"type": "position", "seconds": S}  (optional playback position)
      - {"type": "stop"}
    - Server sends JSON messages:
      - {"type": "schedule", "tier": ..., "cues": [...]}
      - {"type": "narration", "text": ...}
      - {"type": "error", "message": ...}
    """
    await websocket.accept()

    queue: asyncio.Queue = asyncio.Queue()
    position: dict[str, float | None] = {"seconds": None}
    session = WorkoutSession(
        scheduler=TriggerScheduler(resolver=build_resolver()),
        sink=queue.put_nowait,
        position_feed=lambda: position["seconds"],
    )
    forwarder = asyncio.create_task(_forward(websocket, queue))

    try:
        while True:
            data = await websocket.receive_json()
            msg_type = data.get("type") if isinstance(data, dict) else None

            if msg_type == "start":
                try:
                    msg = StartMessage.model_validate(data)
                    track = track_from_request(msg.track) if msg.track is not None else None
                except ValidationError as e:
                    await websocket.send_json({"type": "error", "message": f"Invalid start message: {e.error_count()} errors"})
                    continue
                except HTTPException as e:
                    await websocket.send_json({"type": "error", "message": e.detail})
                    continue

                position["seconds"] = None
                await session.start_phase(_cues_from_message(msg), track=track)
                await websocket.send_json(_schedule_message(session))

            elif msg_type == "position":
                try:
                    position["seconds"] = float(data["seconds"])
                except (KeyError, TypeError, ValueError):
                    await websocket.send_json({"type": "error", "message": "Invalid position message"})

            elif msg_type == "stop":
                await session.stop()

            else:
                await websocket.send_json({"type": "error", "message": f"Unknown message type: {msg_type}"})

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.exception("Narration session failed")
        with contextlib.suppress(Exception):
            await websocket.send_json({"type": "error", "message": str(e)})
    finally:
        forwarder.cancel()
        await asyncio.gather(forwarder, return_exceptions=True)
        await session.stop()

"""Detailed track analysis providers.

A provider returns :class:`AnalysisData` for a track id, or ``None`` when the
analysis is unavailable. Providers never raise for transport or payload
problems; callers degrade to tempo-based estimates instead.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from bassline.config import settings
from bassline.narrative.models import AnalysisData, Section, TimeInterval

logger = logging.getLogger(__name__)


class AnalysisProvider(Protocol):
    async def fetch_analysis(self, track_id: str) -> AnalysisData | None:
        ...


def _parse_intervals(raw: Any) -> list[TimeInterval]:
    if not isinstance(raw, list):
        return []
    out = []
    for item in raw:
        try:
            out.append(TimeInterval(
                start=float(item["start"]),
                duration=float(item["duration"]),
                confidence=float(item.get("confidence", 1.0)),
            ))
        except (KeyError, TypeError, ValueError, AttributeError):
            continue
    out.sort(key=lambda iv: iv.start)
    return out


def _parse_sections(raw: Any) -> list[Section]:
    if not isinstance(raw, list):
        return []
    out = []
    for item in raw:
        try:
            out.append(Section(
                start=float(item["start"]),
                duration=float(item["duration"]),
                confidence=float(item.get("confidence", 0.0)),
                loudness=float(item.get("loudness", 0.0)),
                tempo=float(item.get("tempo", 0.0)),
                key=int(item.get("key", -1)),
                mode=int(item.get("mode", -1)),
                time_signature_confidence=float(item.get("time_signature_confidence", 0.0)),
            ))
        except (KeyError, TypeError, ValueError, AttributeError):
            continue
    out.sort(key=lambda s: s.start)
    return out


def parse_analysis(payload: Any) -> AnalysisData | None:
    """Convert an audio-analysis JSON payload into :class:`AnalysisData`.

    Records with missing or non-numeric fields are skipped. A payload without
    a usable ``track`` block (duration) is rejected.
    """
    if not isinstance(payload, dict):
        return None
    track = payload.get("track")
    if not isinstance(track, dict):
        return None
    try:
        duration = float(track["duration"])
    except (KeyError, TypeError, ValueError):
        return None

    try:
        tempo = float(track.get("tempo") or 0.0)
    except (TypeError, ValueError):
        tempo = 0.0
    try:
        time_signature = int(track.get("time_signature") or 4)
    except (TypeError, ValueError):
        time_signature = 4

    return AnalysisData(
        bars=_parse_intervals(payload.get("bars")),
        beats=_parse_intervals(payload.get("beats")),
        sections=_parse_sections(payload.get("sections")),
        tatums=_parse_intervals(payload.get("tatums")),
        duration=duration,
        tempo=tempo,
        time_signature=time_signature,
    )


class SpotifyAnalysisProvider:
    """Fetches ``/audio-analysis/{id}`` with a bearer token."""

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token if token is not None else settings.analysis_token
        self.base_url = (base_url or settings.analysis_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.analysis_timeout_seconds
        self._transport = transport

    async def fetch_analysis(self, track_id: str) -> AnalysisData | None:
        if not self.token:
            logger.warning("No analysis token configured; detailed analysis unavailable")
            return None

        url = f"{self.base_url}/audio-analysis/{track_id}"
        headers = {"Authorization": f"Bearer {self.token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"Analysis request for {track_id} failed: {e}")
            return None

        if resp.status_code != 200:
            logger.warning(f"Analysis request for {track_id} returned {resp.status_code}")
            return None

        try:
            payload = resp.json()
        except ValueError:
            logger.warning(f"Analysis response for {track_id} is not JSON")
            return None

        analysis = parse_analysis(payload)
        if analysis is None:
            logger.warning(f"Analysis response for {track_id} is malformed")
        else:
            logger.info(
                f"Received analysis for {track_id}: {len(analysis.bars)} bars, "
                f"{len(analysis.beats)} beats, {len(analysis.sections)} sections"
            )
        return analysis


class StaticAnalysisProvider:
    """Serves pre-parsed analysis from a dict; unknown ids are unavailable."""

    def __init__(self, analyses: dict[str, AnalysisData] | None = None):
        self.analyses = dict(analyses or {})
        self.requests: list[str] = []

    async def fetch_analysis(self, track_id: str) -> AnalysisData | None:
        self.requests.append(track_id)
        return self.analyses.get(track_id)

"""Engine control API — start, stop, analyze, state, logs, frame."""

from __future__ import annotations

import cv2
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

router = APIRouter(prefix="/api/engine", tags=["engine"])


def _get_engine(request: Request):
    """Retrieve the PerceptionEngine from app state."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(503, "Perception engine not available")
    return engine


@router.get("/state")
async def get_state(request: Request):
    """Speed, engine state, depth-sorted entities, vitals and clock stats."""
    return _get_engine(request).snapshot()


@router.post("/start")
async def start_engine(request: Request):
    engine = _get_engine(request)
    changed = engine.start()
    return {"state": engine.state.value, "changed": changed}


@router.post("/stop")
async def stop_engine(request: Request):
    engine = _get_engine(request)
    changed = engine.stop()
    return {"state": engine.state.value, "changed": changed}


@router.post("/analyze")
async def analyze(request: Request):
    """Request a tactical advisory and wait for it (fallback on failure)."""
    engine = _get_engine(request)
    if engine.advisory is None:
        raise HTTPException(503, "Advisory client not configured")
    text = await engine.analyze()
    return {"advisory": text}


@router.get("/entities")
async def get_entities(request: Request):
    """Live entities, farthest first."""
    return [e.to_dict() for e in _get_engine(request).entities()]


@router.get("/logs")
async def get_logs(request: Request):
    """Event log, newest first."""
    return [e.to_dict() for e in _get_engine(request).context.event_log.entries()]


@router.get("/frame")
async def get_frame(request: Request):
    """Latest filtered frame as a JPEG."""
    frame = _get_engine(request).frame()
    ok, buf = cv2.imencode(".jpg", cv2.cvtColor(frame, cv2.COLOR_RGBA2BGR))
    if not ok:
        raise HTTPException(500, "Frame encoding failed")
    return Response(content=buf.tobytes(), media_type="image/jpeg")

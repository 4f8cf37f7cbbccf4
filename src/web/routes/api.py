from __future__ import annotations

import time
from typing import List

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from models.detection import Detection
from models.status import SessionSnapshot
from ops.annotate import draw_detection, encode_png
from ..api_models import BoxModel, DetectionSummary, StatusResponse
from ..state import state

router = APIRouter()


def _snapshot() -> SessionSnapshot:
    engine = state.get_engine()
    if engine is None:
        return SessionSnapshot()
    return engine.session.snapshot()


def _summary(detection: Detection) -> DetectionSummary:
    return DetectionSummary(
        id=detection.id,
        frame_index=detection.frame_index,
        timestamp=detection.timestamp,
        box_count=detection.box_count,
        boxes=[BoxModel(**b.to_dict()) for b in detection.boxes],
    )


def _find_detection(detection_id: str) -> Detection:
    engine = state.get_engine()
    detection = engine.session.find(detection_id) if engine is not None else None
    if detection is None:
        raise HTTPException(status_code=404, detail=f"Detection not found: {detection_id}")
    return detection


@router.get("/status", response_model=StatusResponse)
def status():
    """
    Progress of the current (or last) run.

    Returns an idle status when no engine is registered.
    """
    snap = _snapshot()
    uptime = time.time() - state.start_time if state.start_time else None
    return StatusResponse(
        state=snap.state.value,
        source=snap.source,
        current_frame=snap.current_frame,
        last_frame=snap.last_frame,
        progress=snap.progress,
        fps=snap.fps,
        frame_time=snap.frame_time,
        eta_seconds=snap.eta_seconds,
        detection_count=snap.detection_count,
        error=snap.error,
        uptime_seconds=int(uptime) if uptime is not None else None,
    )


@router.get("/detections", response_model=List[DetectionSummary])
def list_detections(offset: int = 0, limit: int = 100):
    if offset < 0 or limit < 0:
        raise HTTPException(status_code=400, detail="offset and limit must be non-negative")
    engine = state.get_engine()
    if engine is None:
        return []
    detections = engine.session.detections
    return [_summary(d) for d in detections[offset:offset + limit]]


@router.get("/detections/{detection_id}", response_model=DetectionSummary)
def get_detection(detection_id: str):
    return _summary(_find_detection(detection_id))


@router.get("/detections/{detection_id}/frame.png")
def detection_frame(detection_id: str):
    detection = _find_detection(detection_id)
    try:
        png = encode_png(draw_detection(detection))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return Response(content=png, media_type="image/png", headers={"Cache-Control": "no-store"})

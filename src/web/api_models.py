from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    state: str = Field(..., description="idle|running|completed|failed|cancelled")
    source: Optional[str] = Field(None, description="Video being processed")
    current_frame: int
    last_frame: int
    progress: float = Field(..., description="current_frame / last_frame")
    fps: float
    frame_time: float = Field(..., description="Seconds spent on the last frame")
    eta_seconds: float
    detection_count: int
    error: Optional[str] = None
    uptime_seconds: Optional[int] = None


class BoxModel(BaseModel):
    x: int
    y: int
    width: int
    height: int


class DetectionSummary(BaseModel):
    id: str
    frame_index: int
    timestamp: float
    box_count: int
    boxes: List[BoxModel] = Field(default_factory=list)

"""
Run state and progress snapshot models.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class RunState(str, Enum):
    """Lifecycle of a video processing run."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Point-in-time view of a detection session.

    Attributes:
        state: Current run state.
        current_frame: Index of the frame most recently read.
        last_frame: Total frames reported by the source (at least 1).
        fps: Instantaneous frames per second of the last iteration.
        frame_time: Seconds spent on the last iteration.
        detection_count: Number of retained detections.
        source: Path or identifier of the video being processed.
        error: Message of the error that failed the run, if any.
    """
    state: RunState = RunState.IDLE
    current_frame: int = 0
    last_frame: int = 1
    fps: float = 0.0
    frame_time: float = 0.0
    detection_count: int = 0
    source: Optional[str] = None
    error: Optional[str] = None

    @property
    def progress(self) -> float:
        """Fraction of frames read, current_frame / last_frame."""
        return self.current_frame / self.last_frame

    @property
    def frames_remaining(self) -> int:
        return max(0, self.last_frame - self.current_frame)

    @property
    def eta_seconds(self) -> float:
        """Estimated time remaining, assuming every frame costs the last frame time."""
        return self.frames_remaining * self.frame_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "current_frame": self.current_frame,
            "last_frame": self.last_frame,
            "progress": self.progress,
            "fps": self.fps,
            "frame_time": self.frame_time,
            "eta_seconds": self.eta_seconds,
            "detection_count": self.detection_count,
            "source": self.source,
            "error": self.error,
        }

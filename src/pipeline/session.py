"""
Detection session state owned by the pipeline engine.
"""

from __future__ import annotations

import threading
from typing import List, Optional, Tuple

from models.detection import Detection
from models.status import RunState, SessionSnapshot


class DetectionSession:
    """
    Mutable run state: detection history, frame counters and timing.

    Only the engine thread writes; readers on other threads use snapshot()
    or detections, which copy under the lock.

    Invariants: current_frame <= last_frame, last_frame >= 1, and detections
    are kept in frame-arrival order.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._detections: List[Detection] = []
        self.state = RunState.IDLE
        self.current_frame = 0
        self.last_frame = 1
        self.frame_time = 0.0
        self.fps = 0.0
        self.source: Optional[str] = None
        self.error: Optional[str] = None

    def reset(self, source: str, total_frames: int) -> None:
        """Clear history and counters for a new run."""
        with self._lock:
            self._detections.clear()
            self.state = RunState.RUNNING
            self.current_frame = 0
            self.last_frame = max(1, int(total_frames))
            self.frame_time = 0.0
            self.fps = 0.0
            self.source = source
            self.error = None

    def set_current_frame(self, index: int) -> None:
        with self._lock:
            # A source may yield more frames than it reported.
            if index > self.last_frame:
                self.last_frame = index
            self.current_frame = max(self.current_frame, index)

    def record_timing(self, elapsed: float) -> None:
        with self._lock:
            self.frame_time = elapsed
            self.fps = 1.0 / elapsed if elapsed > 0 else 0.0

    def append(self, detection: Detection) -> None:
        with self._lock:
            self._detections.append(detection)

    def finish(self, state: RunState, error: Optional[str] = None) -> None:
        with self._lock:
            self.state = state
            self.error = error

    @property
    def last_detection(self) -> Optional[Detection]:
        with self._lock:
            return self._detections[-1] if self._detections else None

    @property
    def detections(self) -> Tuple[Detection, ...]:
        """Read-only view of the detection history."""
        with self._lock:
            return tuple(self._detections)

    def find(self, detection_id: str) -> Optional[Detection]:
        with self._lock:
            for detection in self._detections:
                if detection.id == detection_id:
                    return detection
        return None

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                state=self.state,
                current_frame=self.current_frame,
                last_frame=self.last_frame,
                fps=self.fps,
                frame_time=self.frame_time,
                detection_count=len(self._detections),
                source=self.source,
                error=self.error,
            )

"""
Pytest configuration and shared fixtures.
"""

import os
import sys
from typing import List, Optional

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from algorithms.decoding import ScoreGeometry  # noqa: E402
from inference.backend import PreparedInput  # noqa: E402
from models.errors import SourceError  # noqa: E402
from models.frame import FrameData  # noqa: E402
from observation.base import ObservationSource  # noqa: E402


FRAME_SIZE = 64
MAP_SIZE = FRAME_SIZE // 4


class MockVideoSource(ObservationSource):
    """In-memory video: a list of frames plus a reported frame count."""

    def __init__(self, frames: List[np.ndarray], total_frames: Optional[int] = None, fail_open: bool = False):
        super().__init__("mock")
        self._frames = frames
        self._total = len(frames) if total_frames is None else total_frames
        self._fail_open = fail_open
        self._pos = 0
        self.read_calls = 0
        self.closed = False

    @property
    def total_frame_count(self) -> int:
        return self._total

    def open(self) -> None:
        if self._fail_open:
            raise SourceError("mock source cannot be opened")
        self._is_open = True
        self._pos = 0
        self._frames_read = 0

    def read(self) -> Optional[FrameData]:
        self.read_calls += 1
        if not self._is_open or self._pos >= len(self._frames):
            return None

        frame = self._frames[self._pos]
        self._pos += 1
        self._frames_read += 1

        return FrameData(frame=frame, frame_index=self._frames_read, source=self.source_id)

    def close(self) -> None:
        self._is_open = False
        self.closed = True


class FakeBackend:
    """
    Detector stand-in whose single lit score cell depends on frame brightness.

    Cell (row 2, column 1 + mean // 32) scores 0.9; geometry is a 4x4 box,
    so frames with brightness in the same 32-wide band give identical boxes.
    """

    name = "fake"

    def __init__(self, fail_on_call: Optional[int] = None, score: float = 0.9):
        self.fail_on_call = fail_on_call
        self.score = score
        self.infer_calls = 0

    def prepare(self, frame: np.ndarray) -> PreparedInput:
        return PreparedInput(image=frame, blob=frame)

    def infer(self, blob: np.ndarray) -> ScoreGeometry:
        self.infer_calls += 1
        if self.fail_on_call is not None and self.infer_calls == self.fail_on_call:
            raise RuntimeError("inference exploded")

        column = 1 + int(np.mean(blob)) // 32
        scores = np.zeros((1, 1, MAP_SIZE, MAP_SIZE), dtype=np.float32)
        geometry = np.zeros((1, 5, MAP_SIZE, MAP_SIZE), dtype=np.float32)
        scores[0, 0, 2, column] = self.score
        geometry[0, 0:4, 2, column] = 2.0
        return ScoreGeometry(scores=scores, geometry=geometry)


def solid_frame(value: int, size: int = FRAME_SIZE) -> np.ndarray:
    return np.full((size, size, 3), value, dtype=np.uint8)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
detection:
  backend: "east"
  model_dir: "models"
  conf_threshold: 0.5
  nms_threshold: 0.4
  num_threads: 8
  east:
    model_path: "frozen_east_text_detection.pb"

pipeline:
  frame_similarity_threshold: 5.0
  dedup_compare: "boxes"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "detection": {
            "backend": "east",
            "model_dir": "models",
            "conf_threshold": 0.5,
            "nms_threshold": 0.4,
            "num_threads": 8,
            "use_gpu": False,
            "east": {
                "model_path": "frozen_east_text_detection.pb",
            },
            "textboxes": {
                "model_path": "TextBoxes_icdar13.caffemodel",
                "prototxt_path": "textbox.prototxt",
            },
        },
        "pipeline": {
            "frame_similarity_threshold": 5.0,
            "dedup_compare": "boxes",
            "progress_log_interval": 100,
        },
        "web": {
            "enabled": False,
            "host": "127.0.0.1",
            "port": 5000,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }

"""
Decoded video frame.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional

import numpy as np


@dataclass
class FrameData:
    """
    One decoded frame and where it came from.

    Attributes:
        frame: BGR (or grayscale) pixels, shape (height, width[, channels]).
        frame_index: 1-based position in the video; 0 for stand-alone images.
        timestamp: Wall-clock time the frame was decoded.
        source: Name of the video the frame belongs to.
    """
    frame: np.ndarray
    frame_index: int = 0
    timestamp: float = field(default_factory=time.time)
    source: Optional[str] = None

    @property
    def width(self) -> int:
        return int(self.frame.shape[1]) if self.frame is not None and self.frame.ndim >= 2 else 0

    @property
    def height(self) -> int:
        return int(self.frame.shape[0]) if self.frame is not None and self.frame.ndim >= 2 else 0

    @property
    def is_empty(self) -> bool:
        return self.frame is None or self.frame.size == 0 or self.width == 0 or self.height == 0

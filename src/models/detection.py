"""
Detection models for text-region results.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned box in integer pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
    """
    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        """Exclusive right edge."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Exclusive bottom edge."""
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def as_tuple(self) -> Tuple[int, int, int, int]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x, self.y, self.x2, self.y2)

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Candidate:
    """
    A box proposed by the decoder, before suppression.

    Attributes:
        box: Axis-aligned box clipped to the frame.
        score: Network confidence for the box.
    """
    box: BoundingBox
    score: float


@dataclass(frozen=True)
class Detection:
    """
    One retained pipeline output.

    Attributes:
        frame: The image the boxes were computed on (the network input image).
        boxes: Boxes kept after suppression, in selection order.
        frame_index: Position of the source frame in the video.
        id: Unique identifier.
        timestamp: Unix timestamp when the detection was created.
    """
    frame: np.ndarray = field(repr=False, compare=False)
    boxes: Tuple[BoundingBox, ...]
    frame_index: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def create(cls, frame: np.ndarray, boxes: Sequence[BoundingBox], frame_index: int = 0) -> "Detection":
        return cls(frame=frame, boxes=tuple(boxes), frame_index=frame_index)

    @property
    def box_count(self) -> int:
        return len(self.boxes)

    def to_dict(self) -> Dict[str, Any]:
        """Summary without the image payload."""
        return {
            "id": self.id,
            "frame_index": self.frame_index,
            "timestamp": self.timestamp,
            "box_count": self.box_count,
            "boxes": [b.to_dict() for b in self.boxes],
        }

    def __str__(self) -> str:
        return f"{self.id}: Detections [{self.box_count}]"

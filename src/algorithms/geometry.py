"""
Box geometry helpers.

Pure math shared by the decoder, suppression and de-duplication steps.
All boxes are integer (x, y, width, height) rectangles in pixel space.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

from models.detection import BoundingBox


# Corner coordinates are snapped to this many decimals before floor/ceil.
_SNAP_DECIMALS = 6
# Corners are clamped to +/- this value so huge finite input stays integral.
_COORD_LIMIT = float(2 ** 31 - 1)


def _to_pixel_range(v: float) -> float:
    if math.isnan(v):
        return 0.0
    return round(max(min(v, _COORD_LIMIT), -_COORD_LIMIT), _SNAP_DECIMALS)


def clip_to_frame(box: BoundingBox, frame_width: int, frame_height: int) -> Optional[BoundingBox]:
    """
    Intersect a box with [0, frame_width) x [0, frame_height).

    Returns:
        The clipped box, or None when nothing with positive area remains.
    """
    x1 = max(box.x, 0)
    y1 = max(box.y, 0)
    x2 = min(box.x + box.width, frame_width)
    y2 = min(box.y + box.height, frame_height)

    width = x2 - x1
    height = y2 - y1
    if width <= 0 or height <= 0:
        return None
    return BoundingBox(x=x1, y=y1, width=width, height=height)


def oriented_corners(
    center: Tuple[float, float],
    size: Tuple[float, float],
    angle_degrees: float,
) -> Tuple[Tuple[float, float], ...]:
    """
    Corner points of a rotated rectangle, in cv2.boxPoints order.

    Computed in double precision: cv2.boxPoints returns float32, whose
    round-off at a few hundred pixels exceeds the 1e-6 snap applied before
    floor/ceil and would grow exact boxes by a pixel.

    Args:
        center: (cx, cy) of the rectangle.
        size: (width, height); negative values mirror the rectangle.
        angle_degrees: Clockwise rotation in image coordinates.
    """
    cx, cy = center
    w, h = size
    theta = math.radians(angle_degrees)
    b = math.cos(theta) * 0.5
    a = math.sin(theta) * 0.5

    p0 = (cx - a * h - b * w, cy + b * h - a * w)
    p1 = (cx + a * h - b * w, cy - b * h - a * w)
    p2 = (2 * cx - p0[0], 2 * cy - p0[1])
    p3 = (2 * cx - p1[0], 2 * cy - p1[1])
    return (p0, p1, p2, p3)


def bounding_rect_of_oriented(
    center: Tuple[float, float],
    size: Tuple[float, float],
    angle_degrees: float,
) -> BoundingBox:
    """
    Smallest integer axis-aligned box that encloses a rotated rectangle.

    Edges are floor(min) and ceil(max) of the corners. cv2.boundingRect is
    not used because it adds one pixel to each side length, so an exact
    20x10 rectangle would come out 21x11.

    The result can have zero width or height for degenerate input;
    callers clip it and drop empty boxes.
    """
    corners = oriented_corners(center, size, angle_degrees)
    xs = [_to_pixel_range(p[0]) for p in corners]
    ys = [_to_pixel_range(p[1]) for p in corners]

    x1 = math.floor(min(xs))
    y1 = math.floor(min(ys))
    x2 = math.ceil(max(xs))
    y2 = math.ceil(max(ys))
    return BoundingBox(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


def boxes_equal(a: BoundingBox, b: BoundingBox) -> bool:
    """Exact equality of (x, y, width, height) after rounding to integers."""
    return tuple(int(round(v)) for v in a.as_tuple()) == tuple(int(round(v)) for v in b.as_tuple())


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """
    Calculate Intersection over Union (IoU) between two boxes.

    Returns:
        IoU value between 0 and 1.
    """
    x1_i = max(a.x, b.x)
    y1_i = max(a.y, b.y)
    x2_i = min(a.x2, b.x2)
    y2_i = min(a.y2, b.y2)

    if x2_i <= x1_i or y2_i <= y1_i:
        return 0.0

    intersection = (x2_i - x1_i) * (y2_i - y1_i)
    union = a.area + b.area - intersection
    if union <= 0:
        return 0.0
    return intersection / union

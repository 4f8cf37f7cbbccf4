"""
Decoding of raw detector tensors into candidate boxes.

Two network output layouts are supported through a single `decode` entry point:

- ScoreGeometry: EAST-style score map plus 5-channel geometry map, both
  down-sampled 4x relative to the network input image.
- FlatDetections: one row per detection with center, size and angle.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Union

import numpy as np

from models.detection import Candidate
from models.errors import FrameInputError
from .geometry import bounding_rect_of_oriented, clip_to_frame


# Score/geometry maps are 4x smaller than the network input.
FEATURE_STRIDE = 4.0


@dataclass(frozen=True)
class ScoreGeometry:
    """
    EAST-style network output.

    Attributes:
        scores: Confidence map, shape (H, W) or with leading unit axes (1, 1, H, W).
        geometry: Geometry map, shape (5, H, W) or (1, 5, H, W). Channels are
            distances to the top, right, bottom and left edges, then the angle
            in radians.
    """
    scores: np.ndarray
    geometry: np.ndarray


@dataclass(frozen=True)
class FlatDetections:
    """
    Single-tensor network output.

    Attributes:
        detections: Any shape whose last axis starts with
            [center_x, center_y, width, height, angle_radians]. Extra columns
            are ignored.
        score_column: Column holding a confidence, if the network emits one.
            When None every row scores 1.0 and none is filtered.
    """
    detections: np.ndarray
    score_column: Optional[int] = None


DecoderInput = Union[ScoreGeometry, FlatDetections]


def decode(
    decoder_input: DecoderInput,
    frame_width: int,
    frame_height: int,
    score_threshold: float,
) -> List[Candidate]:
    """
    Convert network output into candidates clipped to the frame.

    Args:
        decoder_input: ScoreGeometry or FlatDetections.
        frame_width: Width of the image the network saw.
        frame_height: Height of the image the network saw.
        score_threshold: Cells or rows scoring below this are ignored.

    Raises:
        FrameInputError: If the tensors are empty or malformed.
    """
    if isinstance(decoder_input, ScoreGeometry):
        return decode_score_geometry(
            decoder_input.scores, decoder_input.geometry, frame_width, frame_height, score_threshold
        )
    if isinstance(decoder_input, FlatDetections):
        return decode_flat_detections(
            decoder_input.detections, frame_width, frame_height, score_threshold, decoder_input.score_column
        )
    raise TypeError(f"Unsupported decoder input: {type(decoder_input).__name__}")


def _as_score_map(scores: np.ndarray) -> np.ndarray:
    arr = np.asarray(scores, dtype=np.float32)
    if arr.size == 0:
        raise FrameInputError("Score map is empty")
    while arr.ndim > 2 and arr.shape[0] == 1:
        arr = arr[0]
    if arr.ndim != 2:
        raise FrameInputError(f"Score map must be 2-D after squeezing, got shape {np.shape(scores)}")
    return arr


def _as_geometry_map(geometry: np.ndarray) -> np.ndarray:
    arr = np.asarray(geometry, dtype=np.float32)
    if arr.size == 0:
        raise FrameInputError("Geometry map is empty")
    while arr.ndim > 3 and arr.shape[0] == 1:
        arr = arr[0]
    if arr.ndim != 3 or arr.shape[0] < 5:
        raise FrameInputError(
            f"Geometry map must have 5 channels (top, right, bottom, left, angle), got shape {np.shape(geometry)}"
        )
    return arr


def decode_score_geometry(
    scores: np.ndarray,
    geometry: np.ndarray,
    frame_width: int,
    frame_height: int,
    score_threshold: float,
) -> List[Candidate]:
    """
    Decode an EAST score map and geometry map.

    Cells are visited in row-major order, so candidates come out in that order.
    """
    score_map = _as_score_map(scores)
    geo = _as_geometry_map(geometry)
    if geo.shape[1:] != score_map.shape:
        raise FrameInputError(
            f"Score map {score_map.shape} and geometry map {geo.shape[1:]} differ in size"
        )

    candidates: List[Candidate] = []
    rows, cols = np.nonzero(score_map >= score_threshold)
    for y, x in zip(rows.tolist(), cols.tolist()):
        score = float(score_map[y, x])

        offset_x = x * FEATURE_STRIDE
        offset_y = y * FEATURE_STRIDE

        top, right, bottom, left, angle = (float(v) for v in geo[:5, y, x])
        if not all(math.isfinite(v) for v in (top, right, bottom, left, angle)):
            continue
        cos = math.cos(angle)
        sin = math.sin(angle)
        h = top + bottom
        w = right + left

        # End point of the box along the rotated right/bottom edges.
        end_x = offset_x + cos * right - sin * bottom
        end_y = offset_y + sin * right + cos * bottom
        p1 = (end_x - sin * h, end_y - cos * h)
        p3 = (end_x - cos * w, end_y + sin * w)
        center = ((p1[0] + p3[0]) * 0.5, (p1[1] + p3[1]) * 0.5)

        rect = bounding_rect_of_oriented(center, (w, h), -angle * 180.0 / math.pi)
        box = clip_to_frame(rect, frame_width, frame_height)
        if box is None:
            continue
        candidates.append(Candidate(box=box, score=score))

    return candidates


def decode_flat_detections(
    detections: np.ndarray,
    frame_width: int,
    frame_height: int,
    score_threshold: float,
    score_column: Optional[int] = None,
) -> List[Candidate]:
    """
    Decode a single detections tensor.

    Without a score column every row is treated as fully confident.
    """
    arr = np.asarray(detections, dtype=np.float32)
    if arr.size == 0:
        return []
    if arr.ndim < 2 or arr.shape[-1] < 5:
        raise FrameInputError(
            f"Detections tensor needs at least 5 values per row, got shape {arr.shape}"
        )
    if score_column is not None and not 0 <= score_column < arr.shape[-1]:
        raise FrameInputError(
            f"Score column {score_column} out of range for shape {arr.shape}"
        )
    rows = arr.reshape(-1, arr.shape[-1])

    candidates: List[Candidate] = []
    for row in rows:
        cx, cy, w, h, angle = (float(v) for v in row[:5])
        score = 1.0 if score_column is None else float(row[score_column])
        if score < score_threshold:
            continue
        if not all(math.isfinite(v) for v in (cx, cy, w, h, angle)):
            continue

        rect = bounding_rect_of_oriented((cx, cy), (w, h), angle * 180.0 / math.pi)
        box = clip_to_frame(rect, frame_width, frame_height)
        if box is None:
            continue
        candidates.append(Candidate(box=box, score=score))

    return candidates

"""
Frame-to-frame change detection.

Used to skip inference on frames that are practically identical to the
last processed one (static slides, paused video, duplicated frames).
"""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np


def mean_abs_difference(frame_a: np.ndarray, frame_b: np.ndarray) -> float:
    """Mean absolute per-pixel difference, averaged over every channel."""
    diff = cv2.absdiff(frame_a, frame_b)
    return float(np.mean(diff))


def are_similar(
    frame_a: Optional[np.ndarray],
    frame_b: Optional[np.ndarray],
    threshold: float,
) -> bool:
    """
    Check whether two frames are close enough to skip re-running detection.

    Returns True if the mean absolute difference is strictly below threshold,
    or the frames are identical. Missing frames, or frames of different shape
    or dtype, are never similar.
    """
    if frame_a is None or frame_b is None:
        return False
    if frame_a.shape != frame_b.shape or frame_a.dtype != frame_b.dtype:
        return False
    if frame_a.size == 0:
        return False

    mean_diff = mean_abs_difference(frame_a, frame_b)
    return mean_diff == 0.0 or mean_diff < threshold


class FrameChangeDetector:
    """
    Holds the similarity threshold for the frame loop.

    Args:
        threshold: Mean absolute difference (8-bit scale) below which two
            frames count as the same.
    """

    def __init__(self, threshold: float = 5.0):
        if threshold < 0:
            raise ValueError("threshold must be non-negative")
        self.threshold = threshold

    def is_similar(self, frame: np.ndarray, previous: Optional[np.ndarray]) -> bool:
        return are_similar(frame, previous, self.threshold)

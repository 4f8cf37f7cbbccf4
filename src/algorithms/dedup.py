"""
Detection-level de-duplication.

A new detection is dropped when it reports the same boxes as the most
recently retained one.
"""

from __future__ import annotations

import logging
from typing import Optional

from models.detection import Detection
from .geometry import boxes_equal


COMPARE_BOXES = "boxes"
COMPARE_COUNT = "count"
COMPARE_MODES = (COMPARE_BOXES, COMPARE_COUNT)


def is_duplicate_of_last(
    candidate: Detection,
    last_retained: Optional[Detection],
    compare: str = COMPARE_BOXES,
) -> bool:
    """
    Check whether candidate repeats last_retained.

    Args:
        candidate: Newly built detection.
        last_retained: Most recent detection in the history, or None.
        compare: "boxes" requires the same boxes in the same order;
            "count" only requires the same number of boxes.
    """
    if last_retained is None:
        return False
    if len(candidate.boxes) != len(last_retained.boxes):
        return False
    if compare == COMPARE_COUNT:
        return True
    return all(boxes_equal(a, b) for a, b in zip(candidate.boxes, last_retained.boxes))


class DetectionDeduplicator:
    """Applies `is_duplicate_of_last` with a configured comparison mode."""

    def __init__(self, compare: str = COMPARE_BOXES):
        if compare not in COMPARE_MODES:
            raise ValueError(f"compare must be one of: {', '.join(COMPARE_MODES)}")
        self.compare = compare
        if compare == COMPARE_COUNT:
            logging.info("Detection de-duplication compares box counts only")

    def is_duplicate(self, candidate: Detection, last_retained: Optional[Detection]) -> bool:
        return is_duplicate_of_last(candidate, last_retained, self.compare)

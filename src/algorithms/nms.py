"""
Greedy non-maximum suppression over decoded candidates.
"""

from __future__ import annotations

from typing import List, Sequence

from models.detection import BoundingBox, Candidate
from .geometry import iou


def select(
    candidates: Sequence[Candidate],
    score_threshold: float,
    iou_threshold: float,
) -> List[Candidate]:
    """
    Keep the best-scoring candidates, dropping overlapping lower-scored ones.

    Candidates below score_threshold are discarded first. The rest are
    sorted by descending score (ties keep input order); each selected box
    removes every remaining candidate whose IoU with it exceeds iou_threshold.

    Returns:
        Selected candidates in selection order.
    """
    remaining = sorted(
        (c for c in candidates if c.score >= score_threshold),
        key=lambda c: c.score,
        reverse=True,
    )
    keep: List[Candidate] = []
    while remaining:
        best = remaining.pop(0)
        keep.append(best)
        remaining = [c for c in remaining if iou(c.box, best.box) <= iou_threshold]
    return keep


def suppress(
    candidates: Sequence[Candidate],
    score_threshold: float,
    iou_threshold: float,
) -> List[BoundingBox]:
    """Run `select` and return only the surviving boxes."""
    return [c.box for c in select(candidates, score_threshold, iou_threshold)]

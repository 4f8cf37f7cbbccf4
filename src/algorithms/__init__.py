"""
Core algorithms for the text detection pipeline.

- geometry: box clipping, rotated-rectangle bounds, equality and IoU
- decoding: network tensors -> candidate boxes
- nms: greedy non-maximum suppression
- frame_change: skip frames that did not change
- dedup: drop detections that repeat the previous one
"""

from .geometry import bounding_rect_of_oriented, boxes_equal, clip_to_frame, iou
from .decoding import DecoderInput, FlatDetections, ScoreGeometry, decode
from .nms import select, suppress
from .frame_change import FrameChangeDetector, are_similar
from .dedup import DetectionDeduplicator, is_duplicate_of_last

__all__ = [
    "bounding_rect_of_oriented",
    "boxes_equal",
    "clip_to_frame",
    "iou",
    "DecoderInput",
    "FlatDetections",
    "ScoreGeometry",
    "decode",
    "select",
    "suppress",
    "FrameChangeDetector",
    "are_similar",
    "DetectionDeduplicator",
    "is_duplicate_of_last",
]

"""
Detection overlays and on-disk export.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Sequence

import cv2
import numpy as np

from models.detection import Detection


# Colors (BGR)
COLOR_BOX = (0, 255, 0)
COLOR_LABEL_TEXT = (255, 255, 255)


def draw_detection(detection: Detection, label_boxes: bool = True) -> np.ndarray:
    """Draw the detection's boxes on a copy of its frame."""
    frame = detection.frame.copy()
    if frame.ndim == 2:
        frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)

    font = cv2.FONT_HERSHEY_SIMPLEX
    font_scale = 0.4
    thickness = 1

    for i, box in enumerate(detection.boxes):
        x1, y1, x2, y2 = box.as_xyxy()
        cv2.rectangle(frame, (x1, y1), (x2, y2), COLOR_BOX, 2)

        if label_boxes:
            label = str(i)
            (text_w, text_h), _ = cv2.getTextSize(label, font, font_scale, thickness)
            top = max(0, y1 - text_h - 4)
            cv2.rectangle(frame, (x1, top), (x1 + text_w + 4, top + text_h + 4), COLOR_BOX, -1)
            cv2.putText(frame, label, (x1 + 2, top + text_h + 1), font, font_scale, COLOR_LABEL_TEXT, thickness)

    return frame


def encode_png(image: np.ndarray) -> bytes:
    ok, buf = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("PNG encoding failed")
    return buf.tobytes()


def detection_filename(index: int, detection: Detection) -> str:
    return f"{index:05d}_frame{detection.frame_index:06d}.png"


def save_detections(detections: Sequence[Detection], save_dir: str) -> str:
    """
    Write each detection as an annotated PNG plus a detections.json summary.

    Returns:
        Path of the written detections.json.
    """
    os.makedirs(save_dir, exist_ok=True)

    entries = []
    for i, detection in enumerate(detections):
        filename = detection_filename(i, detection)
        path = os.path.join(save_dir, filename)
        if not cv2.imwrite(path, draw_detection(detection)):
            raise OSError(f"Failed to write {path}")
        entry: Dict[str, Any] = detection.to_dict()
        entry["image"] = filename
        entries.append(entry)

    summary_path = os.path.join(save_dir, "detections.json")
    with open(summary_path, "w") as f:
        json.dump({"count": len(entries), "detections": entries}, f, indent=2)

    logging.info(f"Saved {len(entries)} detections to {save_dir}")
    return summary_path

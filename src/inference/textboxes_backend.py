"""
TextBoxes++ detector backend (OpenCV DNN, Caffe model).

The network emits a single detections tensor; each row holds a rotated box
as center, size and angle in radians.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from algorithms.decoding import DecoderInput, FlatDetections
from models.errors import FrameInputError, ModelLoadError
from .backend import PreparedInput, verify_model_file


@dataclass(frozen=True)
class TextBoxesBackendConfig:
    model_path: str
    prototxt_path: str
    input_size: Tuple[int, int] = (300, 300)
    mean: Tuple[float, float, float] = (104.0, 117.0, 123.0)
    num_threads: int = 8
    use_gpu: bool = False


class TextBoxesBackend:
    name = "textboxes"

    def __init__(self, cfg: TextBoxesBackendConfig):
        self.cfg = cfg
        verify_model_file(cfg.prototxt_path)
        verify_model_file(cfg.model_path)

        if cfg.num_threads > 0:
            cv2.setNumThreads(cfg.num_threads)

        try:
            self._net = cv2.dnn.readNetFromCaffe(cfg.prototxt_path, cfg.model_path)
        except cv2.error as e:
            raise ModelLoadError(f"Failed to load TextBoxes++ model {cfg.model_path}: {e}") from e

        self._net.setPreferableBackend(cv2.dnn.DNN_BACKEND_OPENCV)
        self._net.setPreferableTarget(
            cv2.dnn.DNN_TARGET_OPENCL if cfg.use_gpu else cv2.dnn.DNN_TARGET_CPU
        )
        logging.info(f"TextBoxes++ model loaded: {cfg.model_path} (opencl={cfg.use_gpu})")

    def prepare(self, frame: np.ndarray) -> PreparedInput:
        if frame is None or frame.size == 0:
            raise FrameInputError("Cannot prepare an empty frame")

        blob = cv2.dnn.blobFromImage(
            frame, 1.0, tuple(self.cfg.input_size), tuple(self.cfg.mean), swapRB=False, crop=False
        )
        if blob is None or blob.size == 0:
            raise FrameInputError("Blob construction produced an empty tensor")
        return PreparedInput(image=frame, blob=blob)

    def infer(self, blob: np.ndarray) -> DecoderInput:
        self._net.setInput(blob)
        return FlatDetections(detections=self._net.forward())

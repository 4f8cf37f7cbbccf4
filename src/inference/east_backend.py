"""
EAST text detector backend (OpenCV DNN).

Loads a frozen EAST TensorFlow graph with cv2.dnn and produces the score
and geometry maps consumed by `algorithms.decoding`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import cv2
import numpy as np

from algorithms.decoding import DecoderInput, ScoreGeometry
from models.errors import FrameInputError, ModelLoadError
from .backend import PreparedInput, verify_model_file


# EAST needs input sides that are multiples of 32.
EAST_SIZE_MULTIPLE = 32


@dataclass(frozen=True)
class EastBackendConfig:
    model_path: str
    mean: Tuple[float, float, float] = (123.68, 116.78, 103.94)
    swap_rb: bool = True
    score_output: str = "feature_fusion/Conv_7/Sigmoid"
    geometry_output: str = "feature_fusion/concat_3"
    num_threads: int = 8
    use_gpu: bool = False


def east_input_size(width: int, height: int) -> Tuple[int, int]:
    """Largest (width, height) not above the frame size that EAST accepts."""
    return (width - width % EAST_SIZE_MULTIPLE, height - height % EAST_SIZE_MULTIPLE)


class EastBackend:
    name = "east"

    def __init__(self, cfg: EastBackendConfig):
        self.cfg = cfg
        verify_model_file(cfg.model_path)

        if cfg.num_threads > 0:
            cv2.setNumThreads(cfg.num_threads)

        try:
            self._net = cv2.dnn.readNet(cfg.model_path)
        except cv2.error as e:
            raise ModelLoadError(f"Failed to load EAST model {cfg.model_path}: {e}") from e

        self._net.setPreferableBackend(cv2.dnn.DNN_BACKEND_OPENCV)
        self._net.setPreferableTarget(
            cv2.dnn.DNN_TARGET_OPENCL if cfg.use_gpu else cv2.dnn.DNN_TARGET_CPU
        )
        self._output_names: Sequence[str] = [cfg.score_output, cfg.geometry_output]
        logging.info(f"EAST model loaded: {cfg.model_path} (opencl={cfg.use_gpu})")

    def prepare(self, frame: np.ndarray) -> PreparedInput:
        if frame is None or frame.size == 0:
            raise FrameInputError("Cannot prepare an empty frame")

        height, width = frame.shape[:2]
        in_w, in_h = east_input_size(width, height)
        if in_w <= 0 or in_h <= 0:
            raise FrameInputError(
                f"Frame {width}x{height} is smaller than the {EAST_SIZE_MULTIPLE}px EAST input block"
            )

        resized = frame if (in_w, in_h) == (width, height) else cv2.resize(frame, (in_w, in_h))
        blob = cv2.dnn.blobFromImage(
            resized, 1.0, (in_w, in_h), tuple(self.cfg.mean), swapRB=self.cfg.swap_rb, crop=False
        )
        if blob is None or blob.size == 0:
            raise FrameInputError("Blob construction produced an empty tensor")
        return PreparedInput(image=resized, blob=blob)

    def infer(self, blob: np.ndarray) -> DecoderInput:
        self._net.setInput(blob)
        scores, geometry = self._net.forward(self._output_names)
        return ScoreGeometry(scores=scores, geometry=geometry)

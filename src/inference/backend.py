"""
Inference backend interface.

A backend turns a BGR frame into the network input image plus blob, runs
the network, and returns the raw output as a DecoderInput. Decoding and
suppression are done by the pipeline, not the backend.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from algorithms.decoding import DecoderInput
from models.errors import ModelLoadError


@dataclass(frozen=True)
class PreparedInput:
    """
    Network input for one frame.

    Attributes:
        image: The (possibly resized) image the network sees; decoded boxes
            are in this image's coordinates.
        blob: Normalized NCHW tensor fed to the network.
    """
    image: np.ndarray
    blob: np.ndarray

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])


class TextDetectorBackend(Protocol):
    name: str

    def prepare(self, frame: np.ndarray) -> PreparedInput:
        ...

    def infer(self, blob: np.ndarray) -> DecoderInput:
        ...


def verify_model_file(path: str) -> None:
    """
    Check that a model file exists and can be read.

    Raises:
        ModelLoadError: If the file is missing or unreadable.
    """
    if not os.path.isfile(path):
        raise ModelLoadError(f"The model file at {path} does not exist.")
    try:
        with open(path, "rb"):
            pass
    except OSError as e:
        raise ModelLoadError(f"Read permission for the model file at {path} is denied.") from e

"""
Text detector inference backends.

Available backends:
- EastBackend: EAST score/geometry maps (TensorFlow graph)
- TextBoxesBackend: TextBoxes++ single detections tensor (Caffe model)
"""

from __future__ import annotations

from models.config import DetectionConfig
from models.errors import ConfigError
from .backend import PreparedInput, TextDetectorBackend, verify_model_file
from .east_backend import EastBackend, EastBackendConfig
from .textboxes_backend import TextBoxesBackend, TextBoxesBackendConfig


def create_backend_from_config(detection_cfg: DetectionConfig) -> TextDetectorBackend:
    """
    Build and load the configured detector backend.

    Raises:
        ModelLoadError: If the model files are missing or cannot be loaded.
        ConfigError: If the backend name is unknown.
    """
    if detection_cfg.backend == "east":
        east = detection_cfg.east
        return EastBackend(
            EastBackendConfig(
                model_path=detection_cfg.resolve_model_path(east.model_path),
                mean=tuple(east.mean),
                swap_rb=east.swap_rb,
                score_output=east.score_output,
                geometry_output=east.geometry_output,
                num_threads=detection_cfg.num_threads,
                use_gpu=detection_cfg.use_gpu,
            )
        )
    if detection_cfg.backend == "textboxes":
        tb = detection_cfg.textboxes
        return TextBoxesBackend(
            TextBoxesBackendConfig(
                model_path=detection_cfg.resolve_model_path(tb.model_path),
                prototxt_path=detection_cfg.resolve_model_path(tb.prototxt_path),
                input_size=tuple(tb.input_size),
                mean=tuple(tb.mean),
                num_threads=detection_cfg.num_threads,
                use_gpu=detection_cfg.use_gpu,
            )
        )
    raise ConfigError(f"Unknown detection backend: {detection_cfg.backend}")


__all__ = [
    "PreparedInput",
    "TextDetectorBackend",
    "verify_model_file",
    "EastBackend",
    "EastBackendConfig",
    "TextBoxesBackend",
    "TextBoxesBackendConfig",
    "create_backend_from_config",
]

"""
Typed models for the video text detector.
"""

from .frame import FrameData
from .detection import BoundingBox, Candidate, Detection
from .status import RunState, SessionSnapshot
from .errors import ConfigError, FrameInputError, ModelLoadError, PipelineError, SourceError
from .config import (
    Config,
    DetectionConfig,
    EastConfig,
    TextBoxesConfig,
    PipelineSettings,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "Candidate",
    "Detection",
    # Status
    "RunState",
    "SessionSnapshot",
    # Errors
    "ConfigError",
    "FrameInputError",
    "ModelLoadError",
    "PipelineError",
    "SourceError",
    # Config
    "Config",
    "DetectionConfig",
    "EastConfig",
    "TextBoxesConfig",
    "PipelineSettings",
    "WebConfig",
]

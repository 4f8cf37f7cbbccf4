"""
Pipeline module for the video text detector.

The pipeline orchestrates the full processing flow:
- Frame acquisition from a video source
- Frame change gating and text detection
- De-duplication into the detection history
- Progress reporting through typed events
"""

from .engine import PipelineEngine, PipelineConfig, create_engine_from_config
from .events import (
    DetectionAdded,
    EventBus,
    PipelineEvent,
    ProgressChanged,
    RunFinished,
    RunStarted,
)
from .runner import PipelineRunner
from .session import DetectionSession

__all__ = [
    "PipelineEngine",
    "PipelineConfig",
    "create_engine_from_config",
    "PipelineRunner",
    "DetectionSession",
    "EventBus",
    "PipelineEvent",
    "RunStarted",
    "ProgressChanged",
    "DetectionAdded",
    "RunFinished",
]

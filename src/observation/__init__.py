"""
Frame sources for the detection pipeline.

The engine only sees ObservationSource; create_video_source is the default
factory it uses to turn a path into a source.
"""

from .base import ObservationSource
from .opencv_source import OpenCVSource, OpenCVSourceConfig


def create_video_source(path: str) -> ObservationSource:
    return OpenCVSource(OpenCVSourceConfig.for_video(path))


__all__ = [
    "ObservationSource",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_video_source",
]

"""
Video file source backed by cv2.VideoCapture.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Union

import cv2

from models.errors import SourceError
from models.frame import FrameData
from .base import ObservationSource


@dataclass
class OpenCVSourceConfig:
    """
    Settings for OpenCVSource.

    Attributes:
        device_id: Video file path, or a capture device index.
        source_id: Name used in logs and FrameData; defaults to the file name.
    """
    device_id: Union[int, str] = 0
    source_id: Optional[str] = None

    @classmethod
    def for_video(cls, path: str) -> "OpenCVSourceConfig":
        return cls(device_id=path, source_id=os.path.basename(path) or path)

    @property
    def name(self) -> str:
        return self.source_id or str(self.device_id)


class OpenCVSource(ObservationSource):
    """
    Reads frames from a video file (or capture device) with OpenCV.

    total_frame_count and position come from the container
    (CAP_PROP_FRAME_COUNT, CAP_PROP_POS_FRAMES) for files; devices report 0
    frames and count reads for the position.
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config.name)
        self.config = config
        self._capture: Optional[cv2.VideoCapture] = None

    @property
    def is_file(self) -> bool:
        return isinstance(self.config.device_id, str)

    @property
    def total_frame_count(self) -> int:
        if self._capture is None or not self.is_file:
            return 0
        return max(0, int(self._capture.get(cv2.CAP_PROP_FRAME_COUNT)))

    @property
    def position(self) -> int:
        if self._capture is not None and self.is_file:
            container_pos = int(self._capture.get(cv2.CAP_PROP_POS_FRAMES))
            if container_pos > 0:
                return container_pos
        return self._frames_read

    def open(self) -> None:
        if self._is_open:
            return

        target = self.config.device_id
        if self.is_file and not os.path.isfile(target):
            raise SourceError(f"Video file not found: {target}")

        capture = cv2.VideoCapture(target)
        if not capture.isOpened():
            capture.release()
            raise SourceError(f"Could not open video {target}")
        self._capture = capture

        self._is_open = True
        self._frames_read = 0
        logging.info(f"Opened {self.source_id}: {self.total_frame_count} frames reported")

    def read(self) -> Optional[FrameData]:
        if self._capture is None:
            return None

        ok, image = self._capture.read()
        if not ok or image is None:
            logging.debug(f"{self.source_id}: end of stream after {self._frames_read} frames")
            return None

        self._frames_read += 1
        return FrameData(frame=image, frame_index=self.position, source=self.source_id)

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logging.info(f"Closed {self.source_id}")
        self._is_open = False

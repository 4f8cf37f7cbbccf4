"""
Frame source interface.

The pipeline reads frames through ObservationSource so that the frame loop
does not depend on how frames are decoded. OpenCVSource reads video files;
tests feed in-memory frame lists.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from models.frame import FrameData


class ObservationSource(ABC):
    """
    A finite, sequential stream of frames.

    Subclasses implement open/read/close and total_frame_count, and bump
    `_frames_read` for every frame they return. Typical use:

        with create_video_source("lecture.mp4") as source:
            print(source.total_frame_count)
            for frame_data in source:
                ...
    """

    def __init__(self, source_id: str):
        self._source_id = source_id
        self._is_open = False
        self._frames_read = 0

    @property
    def source_id(self) -> str:
        return self._source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frames_read(self) -> int:
        """Frames returned by read() since the last open()."""
        return self._frames_read

    @property
    def position(self) -> int:
        """
        1-based index of the frame most recently returned.

        Seekable sources may override this with the container position.
        """
        return self._frames_read

    @property
    @abstractmethod
    def total_frame_count(self) -> int:
        """Frame count the source reports; 0 when empty or unknown."""

    @abstractmethod
    def open(self) -> None:
        """
        Prepare the source for reading.

        Raises:
            SourceError: When the underlying video cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Return the next frame, or None once the stream is exhausted."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resources; idempotent."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        if not self._is_open:
            raise RuntimeError(f"Source {self.source_id} must be open before iterating")
        frame_data = self.read()
        while frame_data is not None:
            yield frame_data
            frame_data = self.read()

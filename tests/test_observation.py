"""
Tests for observation layer.
"""

import cv2
import numpy as np
import pytest

from conftest import MockVideoSource
from models.errors import SourceError
from observation import OpenCVSource, OpenCVSourceConfig, create_video_source


@pytest.fixture
def tiny_video(tmp_path):
    """Write a 6-frame MJPG video; skip if this OpenCV build cannot encode it."""
    path = str(tmp_path / "tiny.avi")
    writer = cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*"MJPG"), 10, (64, 48))
    if not writer.isOpened():
        pytest.skip("MJPG video writer unavailable")
    for i in range(6):
        writer.write(np.full((48, 64, 3), i * 40, dtype=np.uint8))
    writer.release()
    return path


class TestOpenCVSourceConfig:
    def test_for_video(self):
        config = OpenCVSourceConfig.for_video("/data/talks/lecture.mp4")

        assert config.source_id == "lecture.mp4"
        assert config.device_id == "/data/talks/lecture.mp4"

    def test_device_name(self):
        assert OpenCVSourceConfig(device_id=0).name == "0"


class TestMockSource:
    def test_source_lifecycle(self):
        frames = [np.zeros((100, 100, 3), dtype=np.uint8) for _ in range(3)]
        source = MockVideoSource(frames)

        assert not source.is_open
        source.open()
        assert source.is_open
        assert source.position == 0
        assert source.frames_read == 0

        fd = source.read()
        assert fd is not None
        assert fd.source == "mock"
        assert fd.frame_index == 1
        assert source.position == 1

        source.close()
        assert not source.is_open

    def test_context_manager(self):
        frames = [np.zeros((50, 50, 3), dtype=np.uint8) for _ in range(2)]

        with MockVideoSource(frames) as source:
            assert source.is_open
            count = sum(1 for _ in source)
            assert count == 2

        assert not source.is_open

    def test_iteration_requires_open(self):
        source = MockVideoSource([])

        with pytest.raises(RuntimeError, match="must be open"):
            list(source)


class TestOpenCVSource:
    def test_file_detection(self):
        assert OpenCVSource(OpenCVSourceConfig(device_id="clip.mp4")).is_file is True
        assert OpenCVSource(OpenCVSourceConfig(device_id=0)).is_file is False

    def test_missing_file(self, tmp_path):
        source = create_video_source(str(tmp_path / "missing.mp4"))

        with pytest.raises(SourceError, match="not found"):
            source.open()
        assert not source.is_open

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "garbage.mp4"
        path.write_bytes(b"definitely not a video")
        source = create_video_source(str(path))

        with pytest.raises(SourceError):
            source.open()

    def test_closed_source_reads_nothing(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id="clip.mp4"))

        assert source.read() is None
        assert source.total_frame_count == 0
        assert source.position == 0

    def test_reads_video_file(self, tiny_video):
        with create_video_source(tiny_video) as source:
            total = source.total_frame_count
            frames = list(source)

        assert total == 6
        assert len(frames) == 6
        assert [f.frame_index for f in frames] == [1, 2, 3, 4, 5, 6]
        assert (frames[0].width, frames[0].height) == (64, 48)

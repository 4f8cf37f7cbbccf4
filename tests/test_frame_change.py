"""
Tests for frame change detection and detection de-duplication.
"""

import numpy as np
import pytest

from algorithms.dedup import DetectionDeduplicator, is_duplicate_of_last
from algorithms.frame_change import FrameChangeDetector, are_similar, mean_abs_difference
from models.detection import BoundingBox, Detection


def frame(value, shape=(8, 8, 3)):
    return np.full(shape, value, dtype=np.uint8)


def detection(*boxes):
    return Detection.create(frame(0), list(boxes))


class TestAreSimilar:
    def test_identical_frames(self):
        assert are_similar(frame(50), frame(50), 5.0)

    def test_identical_frames_with_zero_threshold(self):
        assert are_similar(frame(50), frame(50), 0.0)

    def test_small_difference(self):
        assert are_similar(frame(50), frame(53), 5.0)

    def test_difference_at_threshold_is_a_change(self):
        assert not are_similar(frame(50), frame(55), 5.0)

    def test_large_difference(self):
        assert not are_similar(frame(0), frame(200), 5.0)

    def test_difference_is_absolute(self):
        assert mean_abs_difference(frame(10), frame(30)) == mean_abs_difference(frame(30), frame(10)) == 20.0

    def test_mean_over_all_channels(self):
        a = frame(0)
        b = frame(0)
        b[:, :, 2] = 30

        assert mean_abs_difference(a, b) == pytest.approx(10.0)

    def test_missing_frame(self):
        assert not are_similar(None, frame(0), 5.0)
        assert not are_similar(frame(0), None, 5.0)

    def test_shape_mismatch(self):
        assert not are_similar(frame(0, (8, 8, 3)), frame(0, (8, 9, 3)), 5.0)

    def test_dtype_mismatch(self):
        assert not are_similar(frame(0), frame(0).astype(np.float32), 5.0)

    def test_grayscale(self):
        assert are_similar(frame(10, (8, 8)), frame(11, (8, 8)), 5.0)


class TestFrameChangeDetector:
    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError):
            FrameChangeDetector(-1.0)

    def test_no_previous_frame(self):
        assert not FrameChangeDetector(5.0).is_similar(frame(0), None)

    def test_uses_threshold(self):
        detector = FrameChangeDetector(25.0)
        assert detector.is_similar(frame(0), frame(20))


class TestDeduplication:
    def test_first_detection_is_never_duplicate(self):
        assert not is_duplicate_of_last(detection(BoundingBox(0, 0, 5, 5)), None)

    def test_same_boxes(self):
        last = detection(BoundingBox(0, 0, 5, 5), BoundingBox(10, 10, 5, 5))
        candidate = detection(BoundingBox(0, 0, 5, 5), BoundingBox(10, 10, 5, 5))

        assert is_duplicate_of_last(candidate, last)

    def test_both_empty(self):
        assert is_duplicate_of_last(detection(), detection())

    def test_different_box(self):
        last = detection(BoundingBox(0, 0, 5, 5))
        candidate = detection(BoundingBox(1, 0, 5, 5))

        assert not is_duplicate_of_last(candidate, last)

    def test_order_matters(self):
        a, b = BoundingBox(0, 0, 5, 5), BoundingBox(10, 10, 5, 5)

        assert not is_duplicate_of_last(detection(a, b), detection(b, a))

    def test_different_count(self):
        a = BoundingBox(0, 0, 5, 5)

        assert not is_duplicate_of_last(detection(a), detection(a, a))

    def test_count_mode_ignores_coordinates(self):
        last = detection(BoundingBox(0, 0, 5, 5))
        candidate = detection(BoundingBox(40, 40, 8, 8))

        assert is_duplicate_of_last(candidate, last, compare="count")
        assert DetectionDeduplicator("count").is_duplicate(candidate, last)
        assert not DetectionDeduplicator("boxes").is_duplicate(candidate, last)

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            DetectionDeduplicator("iou")

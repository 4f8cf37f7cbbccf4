"""
Pipeline engine for the video text detector.

This module drives the per-frame loop:
- Frame acquisition from an observation source
- Frame change gate (skip frames identical to the last processed one)
- Inference, decoding and non-maximum suppression
- De-duplication against the last retained detection
- Progress, timing and event bookkeeping
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

import cv2
import numpy as np

from algorithms.decoding import decode
from algorithms.dedup import DetectionDeduplicator
from algorithms.frame_change import FrameChangeDetector
from algorithms.nms import suppress
from inference import TextDetectorBackend, create_backend_from_config
from models.config import Config
from models.detection import Detection
from models.errors import FrameInputError, PipelineError, SourceError
from models.status import RunState
from observation import ObservationSource, create_video_source
from .events import (
    DetectionAdded,
    EventBus,
    EventCallback,
    ProgressChanged,
    RunFinished,
    RunStarted,
)
from .session import DetectionSession


SourceFactory = Callable[[str], ObservationSource]


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        conf_threshold: Minimum score for a decoded cell to become a candidate.
        nms_threshold: IoU above which a lower-scored candidate is suppressed.
        nms_score_threshold: Minimum score kept by suppression; None uses conf_threshold.
        frame_similarity_threshold: Mean absolute difference below which a frame is skipped.
        dedup_compare: "boxes" or "count", see algorithms.dedup.
        progress_log_interval: Frames between progress log lines (0 disables).
    """
    conf_threshold: float = 0.5
    nms_threshold: float = 0.4
    nms_score_threshold: Optional[float] = None
    frame_similarity_threshold: float = 5.0
    dedup_compare: str = "boxes"
    progress_log_interval: int = 100

    @property
    def effective_nms_score_threshold(self) -> float:
        if self.nms_score_threshold is None:
            return self.conf_threshold
        return self.nms_score_threshold


@dataclass
class RunCounters:
    """Per-run frame accounting, used for the summary log line."""
    processed: int = 0
    skipped_similar: int = 0
    duplicates: int = 0


class PipelineEngine:
    """
    Runs a text detector over every frame of a video.

    The engine is single-threaded: frame n+1 is not read before frame n has
    been decoded, de-duplicated and published. Run it on a worker thread
    (see PipelineRunner) to observe events while it works.

    Example:
        engine = PipelineEngine(backend, PipelineConfig(conf_threshold=0.5))
        engine.add_callback(print)
        session = engine.process_video("lecture.mp4")
    """

    def __init__(
        self,
        backend: TextDetectorBackend,
        config: PipelineConfig,
        source_factory: Optional[SourceFactory] = None,
        events: Optional[EventBus] = None,
    ):
        self.backend = backend
        self.config = config
        self.session = DetectionSession()
        self.events = events or EventBus()
        self._source_factory = source_factory or create_video_source
        self._change_detector = FrameChangeDetector(config.frame_similarity_threshold)
        self._deduplicator = DetectionDeduplicator(config.dedup_compare)
        self._stop_requested = threading.Event()
        self._run_lock = threading.Lock()
        self.counters = RunCounters()

    def add_callback(self, callback: EventCallback) -> Callable[[], None]:
        """
        Add a callback to be called with every pipeline event.

        Args:
            callback: Function taking one event argument.

        Returns:
            A function that removes the callback.
        """
        return self.events.subscribe(callback)

    @property
    def state(self) -> RunState:
        return self.session.state

    @property
    def detections(self) -> Tuple[Detection, ...]:
        return self.session.detections

    def stop(self) -> None:
        """Request cancellation; honoured before the next frame is read."""
        self._stop_requested.set()

    def new_stop_token(self) -> threading.Event:
        """
        Start a fresh cancellation token and make it the one stop() sets.

        A stop() issued after this call applies to the run given the token,
        even if that run has not reached its frame loop yet.
        """
        if self._run_lock.locked():
            raise PipelineError("A video is already being processed")
        self._stop_requested = threading.Event()
        return self._stop_requested

    def process_video(self, path: str, stop_token: Optional[threading.Event] = None) -> DetectionSession:
        """
        Process every frame of a video.

        Args:
            path: Video file to read.
            stop_token: Cancellation token from new_stop_token(); a fresh
                one is created when omitted.

        Returns:
            The session, in COMPLETED or CANCELLED state.

        Raises:
            SourceError: If the video cannot be opened.
            PipelineError: If a run is already in progress, or a frame fails.
        """
        if not self._run_lock.acquire(blocking=False):
            raise PipelineError("A video is already being processed")
        try:
            if stop_token is None:
                stop_token = self._stop_requested = threading.Event()
            return self._run(path, stop_token)
        finally:
            self._run_lock.release()

    def _run(self, path: str, stop_token: threading.Event) -> DetectionSession:
        self.counters = RunCounters()

        source = self._source_factory(path)
        try:
            source.open()
        except Exception as e:
            self.session.reset(path, 0)
            self._finish(RunState.FAILED, str(e))
            logging.error(f"Failed to open video {path}: {e}")
            if isinstance(e, SourceError):
                raise
            raise SourceError(f"Failed to open video {path}: {e}") from e

        try:
            total_frames = source.total_frame_count
            self.session.reset(path, total_frames)
            self.events.publish(RunStarted(source=path, last_frame=self.session.last_frame))
            self._publish_progress()
            logging.info(f"Pipeline started: source={path}, frames={total_frames}, backend={self.backend.name}")

            if total_frames <= 0:
                logging.info("Video reports no frames, nothing to process")
                self._finish(RunState.COMPLETED)
                return self.session

            self._loop(source, stop_token)
        except Exception as e:
            logging.error(f"Pipeline error at frame {self.session.current_frame}: {e}")
            self._finish(RunState.FAILED, str(e))
            raise
        finally:
            try:
                source.close()
            except Exception as e:
                logging.warning(f"Error closing source: {e}")

        return self.session

    def _loop(self, source: ObservationSource, stop_token: threading.Event) -> None:
        previous: Optional[np.ndarray] = None

        while True:
            if stop_token.is_set():
                logging.info("Pipeline cancelled")
                self._finish(RunState.CANCELLED)
                return

            started = time.perf_counter()

            frame_data = source.read()
            if frame_data is None:
                self._finish(RunState.COMPLETED)
                return
            if frame_data.is_empty:
                raise FrameInputError(f"Empty frame at position {source.position}")

            self.session.set_current_frame(source.position)
            self._publish_progress()

            frame = frame_data.frame
            if previous is None or not self._change_detector.is_similar(frame, previous):
                detection = self.detect(frame, frame_index=self.session.current_frame)
                self.counters.processed += 1

                if self._deduplicator.is_duplicate(detection, self.session.last_detection):
                    self.counters.duplicates += 1
                    logging.debug(f"Frame {self.session.current_frame}: duplicate of last detection")
                else:
                    self.session.append(detection)
                    self.events.publish(DetectionAdded(detection=detection))
                    logging.debug(
                        f"Frame {self.session.current_frame}: detection added "
                        f"({detection.box_count} boxes)"
                    )

                previous = frame.copy()
            else:
                self.counters.skipped_similar += 1

            self.session.record_timing(time.perf_counter() - started)
            self._publish_progress()
            self._log_progress()

    def detect(
        self,
        frame: np.ndarray,
        frame_index: int = 0,
        conf_threshold: Optional[float] = None,
    ) -> Detection:
        """
        Run one frame through inference, decoding and suppression.

        Does not touch the session.
        """
        conf = self.config.conf_threshold if conf_threshold is None else conf_threshold

        prepared = self.backend.prepare(frame)
        output = self.backend.infer(prepared.blob)
        candidates = decode(output, prepared.width, prepared.height, conf)
        boxes = suppress(candidates, self.config.effective_nms_score_threshold, self.config.nms_threshold)

        return Detection.create(prepared.image.copy(), boxes, frame_index=frame_index)

    def process_single_frame(
        self,
        image: Union[np.ndarray, str],
        confidence_override: Optional[float] = None,
    ) -> Detection:
        """
        Detect text regions in a single image.

        Args:
            image: BGR image array or path to an image file.
            confidence_override: Decode threshold for this call only;
                suppression keeps its configured score threshold.

        Raises:
            FrameInputError: If the image is missing or empty.
        """
        if isinstance(image, str):
            path = image
            image = cv2.imread(path)
            if image is None:
                raise FrameInputError(f"Could not read image {path}")
        if image is None or image.size == 0:
            raise FrameInputError("Cannot process an empty image")
        return self.detect(image, conf_threshold=confidence_override)

    def _publish_progress(self) -> None:
        self.events.publish(ProgressChanged(snapshot=self.session.snapshot()))

    def _finish(self, state: RunState, error: Optional[str] = None) -> None:
        self.session.finish(state, error)
        snapshot = self.session.snapshot()
        if state != RunState.FAILED:
            logging.info(
                f"Pipeline {state.value}: frames={snapshot.current_frame}/{snapshot.last_frame}, "
                f"processed={self.counters.processed}, skipped={self.counters.skipped_similar}, "
                f"duplicates={self.counters.duplicates}, detections={snapshot.detection_count}"
            )
        self.events.publish(
            RunFinished(state=state, detection_count=snapshot.detection_count, error=error)
        )

    def _log_progress(self) -> None:
        interval = self.config.progress_log_interval
        current = self.session.current_frame
        if interval <= 0 or current % interval != 0:
            return
        snapshot = self.session.snapshot()
        logging.info(
            f"Progress: frame {snapshot.current_frame}/{snapshot.last_frame} "
            f"({snapshot.progress:.0%}), fps={snapshot.fps:.1f}, "
            f"eta={snapshot.eta_seconds:.0f}s, detections={snapshot.detection_count}"
        )


def create_engine_from_config(
    config: Config,
    backend: Optional[TextDetectorBackend] = None,
    source_factory: Optional[SourceFactory] = None,
) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from the typed config.

    Loads the configured backend unless one is given, so model errors
    surface here, before any video is opened.

    Args:
        config: Full application config.
        backend: Pre-built backend (tests, custom networks).
        source_factory: Callable turning a path into an ObservationSource.
    """
    if backend is None:
        backend = create_backend_from_config(config.detection)

    detection_cfg = config.detection
    pipeline_cfg = config.pipeline
    engine_config = PipelineConfig(
        conf_threshold=detection_cfg.conf_threshold,
        nms_threshold=detection_cfg.nms_threshold,
        nms_score_threshold=detection_cfg.nms_score_threshold,
        frame_similarity_threshold=pipeline_cfg.frame_similarity_threshold,
        dedup_compare=pipeline_cfg.dedup_compare,
        progress_log_interval=pipeline_cfg.progress_log_interval,
    )
    return PipelineEngine(backend, engine_config, source_factory=source_factory)

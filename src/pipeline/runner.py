"""
Background execution of a pipeline run.

The engine loop is blocking; PipelineRunner moves it onto a single worker
thread so callers (CLI, web status API) stay responsive and can cancel.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Optional

from models.errors import PipelineError
from .engine import PipelineEngine
from .session import DetectionSession


# Poll period for wait(); keeps the main thread responsive to Ctrl+C.
WAIT_POLL_SECONDS = 0.25


class PipelineRunner:
    """
    Runs PipelineEngine.process_video on a worker thread.

    Example:
        with PipelineRunner(engine) as runner:
            runner.start("lecture.mp4")
            session = runner.wait()
    """

    def __init__(self, engine: PipelineEngine):
        self.engine = engine
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pipeline")
        self._future: Optional[Future] = None

    @property
    def future(self) -> Optional[Future]:
        return self._future

    @property
    def is_running(self) -> bool:
        return self._future is not None and not self._future.done()

    def start(self, path: str) -> Future:
        """
        Start processing a video in the background.

        Returns:
            Future resolving to the DetectionSession, or raising the run error.
        """
        if self.is_running:
            raise PipelineError("A video is already being processed")
        # Token exists before submit so an early cancel() is not lost
        stop_token = self.engine.new_stop_token()
        logging.info(f"Starting background run for {path}")
        self._future = self._executor.submit(self.engine.process_video, path, stop_token)
        return self._future

    def cancel(self) -> None:
        """Ask the running engine to stop before its next frame."""
        self.engine.stop()

    def wait(self, timeout: Optional[float] = None) -> DetectionSession:
        """
        Block until the run ends.

        Raises:
            PipelineError: If no run was started.
            concurrent.futures.TimeoutError: If timeout elapses first.
            Any error raised by the run itself.
        """
        if self._future is None:
            raise PipelineError("No run has been started")

        if timeout is not None:
            return self._future.result(timeout=timeout)

        while True:
            try:
                return self._future.result(timeout=WAIT_POLL_SECONDS)
            except FutureTimeout:
                continue

    def shutdown(self, wait: bool = True) -> None:
        if self.is_running:
            self.cancel()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "PipelineRunner":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown(wait=True)

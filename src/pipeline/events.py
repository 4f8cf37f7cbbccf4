"""
Typed pipeline events and a small publish/subscribe bus.

Observers either register a callback (run synchronously on the pipeline
thread) or open a bounded queue channel and drain it from their own thread.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from models.detection import Detection
from models.status import RunState, SessionSnapshot


@dataclass(frozen=True)
class RunStarted:
    source: str
    last_frame: int


@dataclass(frozen=True)
class ProgressChanged:
    snapshot: SessionSnapshot


@dataclass(frozen=True)
class DetectionAdded:
    detection: Detection


@dataclass(frozen=True)
class RunFinished:
    state: RunState
    detection_count: int
    error: Optional[str] = None


PipelineEvent = Union[RunStarted, ProgressChanged, DetectionAdded, RunFinished]
EventCallback = Callable[[PipelineEvent], None]


class EventBus:
    """
    Fan-out of pipeline events to callbacks and queue channels.

    Callback errors are logged and never abort the publisher. A full channel
    drops the event with a warning rather than blocking the frame loop.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._callbacks: List[EventCallback] = []
        self._channels: List["queue.Queue[PipelineEvent]"] = []

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """
        Register a callback for every event.

        Returns:
            A function that removes the subscription.
        """
        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def channel(self, maxsize: int = 1000) -> "queue.Queue[PipelineEvent]":
        """Open a bounded queue that receives every event published from now on."""
        q: "queue.Queue[PipelineEvent]" = queue.Queue(maxsize=maxsize)
        with self._lock:
            self._channels.append(q)
        return q

    def close_channel(self, q: "queue.Queue[PipelineEvent]") -> None:
        with self._lock:
            if q in self._channels:
                self._channels.remove(q)

    def publish(self, event: PipelineEvent) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
            channels = list(self._channels)

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logging.warning(f"Event callback error: {e}")

        for q in channels:
            try:
                q.put_nowait(event)
            except queue.Full:
                logging.warning(f"Event channel full, dropping {type(event).__name__}")

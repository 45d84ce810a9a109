import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from engine.config import TrainingParameters
from engine.errors import ChannelError


# Longest a blocked receive goes without noticing close()
CLOSE_CHECK_INTERVAL = 0.05


class Channel:
    """
    One-directional single-producer/single-consumer message channel.

    Either end may close it. After closing, sends fail with ChannelError and
    receives fail once the already queued messages have been drained.
    """

    def __init__(self, capacity: int = 0, name: str = 'channel'):
        self.name = name
        self._queue = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()

    def send(self, message: Any) -> None:
        if self._closed.is_set():
            raise ChannelError(f"{self.name} is closed")
        self._queue.put(message)

    def receive(self, timeout: Optional[float] = None) -> Any:
        """
        Wait up to `timeout` seconds for a message, or indefinitely if None.

        Returns None if nothing arrived in time.

        Raises:
            ChannelError: If the channel is closed and empty
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            if self._closed.is_set() and self._queue.empty():
                raise ChannelError(f"{self.name} is closed")
            wait = CLOSE_CHECK_INTERVAL
            if deadline is not None:
                wait = min(wait, max(0.0, deadline - time.monotonic()))
            try:
                return self._queue.get(timeout=wait)
            except queue.Empty:
                if deadline is not None and time.monotonic() >= deadline:
                    if self._closed.is_set():
                        raise ChannelError(f"{self.name} is closed")
                    return None

    def try_receive(self) -> Any:
        """Non-blocking receive; None when empty"""
        if self._closed.is_set() and self._queue.empty():
            raise ChannelError(f"{self.name} is closed")
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def close(self) -> None:
        self._closed.set()

    def __len__(self) -> int:
        return self._queue.qsize()


class ProgressChannel(Channel):
    """Per-epoch accuracy values, worker to display.

    Bounded: when full, the oldest value is discarded so the training loop
    never waits on a slow display.
    """

    def __init__(self, capacity: int = 10000):
        super().__init__(capacity=capacity, name='progress channel')
        self.dropped = 0

    def send(self, accuracy: float) -> None:
        if self._closed.is_set():
            raise ChannelError(f"{self.name} is closed")
        value = float(accuracy)
        while True:
            try:
                self._queue.put_nowait(value)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                    self.dropped += 1
                except queue.Empty:
                    pass


@dataclass(frozen=True)
class PredictionRequest:
    """One sample of the nine raw water-quality measurements"""
    features: Tuple[float, ...]


@dataclass(frozen=True)
class PredictionResult:
    probability: float = 0.0
    is_potable: bool = False
    error: Optional[str] = None

    def describe(self) -> str:
        if self.error:
            return f"Prediction failed: {self.error}"
        label = "POTABLE" if self.is_potable else "NOT POTABLE"
        return f"{label} - Confidence: {self.probability * 100:.2f}%"


ParameterMessage = Union[TrainingParameters, PredictionRequest]


class ParameterChannel(Channel):
    """Training requests (and prediction requests), display to worker"""

    def __init__(self):
        super().__init__(name='parameter channel')

    def send(self, message: ParameterMessage) -> None:
        if not isinstance(message, (TrainingParameters, PredictionRequest)):
            raise TypeError(f"Unsupported message type: {type(message).__name__}")
        super().send(message)

import time
from typing import List, Optional

from engine.channels import ProgressChannel
from engine.errors import ChannelError


class ProgressMonitor:
    """
    Display-side view of the progress stream.

    Never blocks: poll() only takes the values already queued. A run counts
    as finished once the expected number of epochs arrived, or when values
    stop arriving for `idle_timeout` seconds after the run has started.
    """

    def __init__(self, channel: ProgressChannel, idle_timeout: float = 2.0):
        self.channel = channel
        self.idle_timeout = idle_timeout
        self.accuracies: List[float] = []
        self.expected_epochs: Optional[int] = None
        self.last_received_time: Optional[float] = None
        self.disconnected = False

    def expect_run(self, epochs: int) -> None:
        """Clear the history before a new run is requested"""
        self.accuracies = []
        self.expected_epochs = epochs
        self.last_received_time = None

    def poll(self) -> int:
        """Drain queued values; returns how many arrived"""
        received = 0
        while True:
            try:
                value = self.channel.try_receive()
            except ChannelError:
                self.disconnected = True
                break
            if value is None:
                break
            self.accuracies.append(value)
            received += 1
        if received:
            self.last_received_time = time.time()
        return received

    @property
    def latest(self) -> Optional[float]:
        return self.accuracies[-1] if self.accuracies else None

    def is_complete(self) -> bool:
        if self.expected_epochs is not None and len(self.accuracies) >= self.expected_epochs:
            return True
        if self.last_received_time is None:
            return False
        return time.time() - self.last_received_time > self.idle_timeout

    def status(self) -> str:
        if not self.accuracies:
            return "Waiting for training progress"
        total = self.expected_epochs if self.expected_epochs is not None else '?'
        state = "Training completed" if self.is_complete() else "Training in progress"
        return f"{state} | Epoch: {len(self.accuracies)}/{total} | Accuracy: {self.latest * 100:.2f}%"

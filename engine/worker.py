import threading
from typing import Optional

from engine.channels import Channel, ParameterChannel, ProgressChannel
from engine.config import WorkerConfig
from engine.controller import TrainingController
from engine.data_loader import Dataset, load_dataset
from engine.logger import log_training
from engine.preprocessing import apply_normalization, compute_statistics, shuffle


class TrainingWorker:
    """
    Owns the background training thread.

    The dataset is loaded and preprocessed synchronously in start(), so a
    DataError reaches the caller before any thread exists. The thread then
    runs the controller loop until the parameter channel is closed.
    """

    def __init__(self, config: WorkerConfig,
                 parameter_channel: ParameterChannel,
                 progress_channel: ProgressChannel,
                 result_channel: Optional[Channel] = None,
                 dataset: Optional[Dataset] = None):
        self.config = config
        self.parameter_channel = parameter_channel
        self.progress_channel = progress_channel
        self.result_channel = result_channel
        self.dataset = dataset
        self.controller: Optional[TrainingController] = None
        self.completed_runs = 0
        self._thread: Optional[threading.Thread] = None

    def prepare(self) -> TrainingController:
        """Load, normalize and shuffle the data, then build the controller"""
        if self.dataset is None:
            log_training(f"Loading dataset from {self.config.data_path}", self.config.log_file)
            self.dataset = load_dataset(self.config.data_path, self.config.delimiter)
        log_training(f"Dataset ready: {len(self.dataset)} samples, "
                     f"{self.dataset.n_features} features", self.config.log_file)

        stats = compute_statistics(self.dataset.features)
        features, labels = shuffle(apply_normalization(self.dataset.features, stats),
                                   self.dataset.labels)

        self.controller = TrainingController(
            features, labels,
            self.parameter_channel, self.progress_channel,
            config=self.config, stats=stats,
            result_channel=self.result_channel
        )
        return self.controller

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Training worker already started")
        if self.controller is None:
            self.prepare()
        self._thread = threading.Thread(target=self._run, name='training-worker', daemon=True)
        self._thread.start()

    def _run(self) -> None:
        log_training("Starting neural network training thread", self.config.log_file)
        self.completed_runs = self.controller.run()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the thread to exit; True if it has"""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """Close the parameter channel and wait for the thread"""
        self.parameter_channel.close()
        return self.join(timeout)

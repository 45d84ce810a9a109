import dataclasses
import enum
import time
from typing import Optional

import numpy as np

from engine.channels import (Channel, ParameterChannel, PredictionRequest,
                             PredictionResult, ProgressChannel)
from engine.config import TrainingParameters, WorkerConfig
from engine.data_loader import N_FEATURES
from engine.errors import ChannelError, ConfigurationError
from engine.logger import log_training
from engine.model import DECISION_THRESHOLD, NetworkTrainer
from engine.preprocessing import NormalizationStats, apply_normalization


class ControllerState(enum.Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    TERMINATED = 'terminated'


class TrainingController:
    """
    Waits for training requests and runs each one to completion.

    Requests that arrive during a run are only read once the run has
    finished; a run cannot be interrupted mid-epoch. Closing the parameter
    channel stops the loop.
    """

    def __init__(self, features: np.ndarray, labels: np.ndarray,
                 parameter_channel: ParameterChannel,
                 progress_channel: ProgressChannel,
                 config: Optional[WorkerConfig] = None,
                 stats: Optional[NormalizationStats] = None,
                 result_channel: Optional[Channel] = None):
        self.features = features
        self.labels = labels
        self.parameter_channel = parameter_channel
        self.progress_channel = progress_channel
        self.result_channel = result_channel
        self.config = config or WorkerConfig()
        self.stats = stats

        self.state = ControllerState.IDLE
        self.current_parameters = TrainingParameters(restart=False)
        self.completed_runs = 0
        self.last_trainer: Optional[NetworkTrainer] = None

    def run(self) -> int:
        """Serve requests until the parameter channel closes.

        Returns:
            Number of runs that finished every epoch
        """
        self._log_training("Training controller waiting for parameters")
        while True:
            try:
                message = self.parameter_channel.receive(timeout=self.config.poll_timeout)
            except ChannelError:
                break

            if message is None:
                continue
            if isinstance(message, PredictionRequest):
                self._answer_prediction(message)
                continue

            self.current_parameters = message
            self._log_training(f"Received new training parameters: {message}")
            if message.restart:
                self.run_training(dataclasses.replace(self.current_parameters))

        self.state = ControllerState.TERMINATED
        self._log_training(f"Parameter channel closed; stopping after {self.completed_runs} run(s)")
        return self.completed_runs

    def run_training(self, params: TrainingParameters) -> bool:
        """
        Execute one full training run.

        Any failure ends this run only; the controller stays available.

        Returns:
            True if every epoch completed
        """
        self.state = ControllerState.RUNNING
        try:
            trainer = NetworkTrainer(self.features.shape[1], params)
            architecture = '-'.join(str(layer.shape[1]) for layer in trainer.layers)
            self._log_training("=" * 70)
            self._log_training(f"Starting training run {self.completed_runs + 1}")
            self._log_training(f"Network architecture: {self.features.shape[1]}-{architecture}")
            self._log_training(f"Epochs: {params.epochs}, Learning rate: {params.learning_rate}")

            start_time = time.time()
            final_accuracy = trainer.train(
                self.features, self.labels,
                on_epoch=self.progress_channel.send,
                log_interval=self.config.log_interval,
                log_fn=self._log_training
            )
        except ConfigurationError as e:
            self._log_training(f"Invalid training parameters: {e}")
            return False
        except ChannelError as e:
            self._log_training(f"Progress receiver disconnected, run abandoned: {e}")
            return False
        except Exception as e:
            self._log_training(f"Training run failed: {type(e).__name__}: {e}")
            return False
        finally:
            self.state = ControllerState.IDLE

        self.completed_runs += 1
        self.last_trainer = trainer
        self._log_training(
            f"Training completed in {time.time() - start_time:.1f} seconds | "
            f"Final accuracy: {final_accuracy * 100:.2f}%"
        )
        return True

    def predict(self, sample) -> PredictionResult:
        """Classify one raw sample with the most recently trained network"""
        try:
            values = np.asarray(sample, dtype=np.float64).ravel()
        except (TypeError, ValueError):
            return PredictionResult(error=f"Sample is not numeric: {sample!r}")
        if values.shape[0] != N_FEATURES:
            return PredictionResult(error=f"Expected {N_FEATURES} values, got {values.shape[0]}")
        if self.last_trainer is None:
            return PredictionResult(error="No trained network available yet")

        if self.stats is not None:
            values = apply_normalization(values, self.stats)
        probability = float(self.last_trainer.predict(values)[0])
        return PredictionResult(probability=probability,
                                is_potable=probability >= DECISION_THRESHOLD)

    def _answer_prediction(self, request: PredictionRequest) -> None:
        result = self.predict(request.features)
        self._log_training(f"Prediction request answered: {result.describe()}")
        if self.result_channel is None:
            return
        try:
            self.result_channel.send(result)
        except ChannelError as e:
            self._log_training(f"Failed to send prediction result: {e}")

    def _log_training(self, message: str) -> None:
        log_training(message, self.config.log_file)

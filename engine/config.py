import math
import numbers
from dataclasses import dataclass
from typing import Optional

from engine.errors import ConfigurationError


@dataclass(frozen=True)
class TrainingParameters:
    """Hyperparameters for a single training run"""
    epochs: int = 2000
    hidden_layers: int = 2
    neurons_per_layer: int = 32
    learning_rate: float = 0.5
    restart: bool = True

    def validate(self) -> None:
        """Raise ConfigurationError if the run cannot be built"""
        for name in ('hidden_layers', 'neurons_per_layer', 'epochs'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if isinstance(self.learning_rate, bool) or not isinstance(self.learning_rate, numbers.Real):
            raise ConfigurationError(f"learning_rate must be a number, got {self.learning_rate!r}")

        if self.hidden_layers <= 0:
            raise ConfigurationError("Hidden layers must be at least 1")
        if self.neurons_per_layer <= 0:
            raise ConfigurationError("Neurons per layer must be at least 1")
        if self.epochs <= 0:
            raise ConfigurationError("Epochs must be at least 1")
        if not math.isfinite(self.learning_rate) or self.learning_rate <= 0:
            raise ConfigurationError("Learning rate must be a finite number greater than 0")

    @classmethod
    def from_args(cls, args):
        return cls(
            epochs=args.epochs,
            hidden_layers=args.hidden_layers,
            neurons_per_layer=args.neurons,
            learning_rate=args.learning_rate,
            restart=True
        )


@dataclass
class WorkerConfig:
    """Configuration for the training worker"""
    data_path: str = 'data/water_potability.csv'
    delimiter: str = ','
    poll_timeout: float = 0.1
    progress_capacity: int = 10000
    log_interval: int = 100
    log_file: Optional[str] = None

    @classmethod
    def from_args(cls, args):
        return cls(
            data_path=args.data,
            poll_timeout=args.poll_timeout,
            progress_capacity=args.progress_capacity,
            log_interval=args.log_interval,
            log_file=args.log_file
        )

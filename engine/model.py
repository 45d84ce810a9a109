import time
from typing import Callable, List, Optional, Tuple

import numpy as np

from engine.config import TrainingParameters
from layers.dense import Dense
from layers.activation import get_activation
from optimizers import StagedSGD


ACCURACY_TOLERANCE = 1e-6
DECISION_THRESHOLD = 0.5


class NetworkTrainer:
    """Full-batch binary classifier: ReLU hidden layers, sigmoid output"""

    def __init__(self, input_size: int, params: TrainingParameters):
        # Reject bad hyperparameters before allocating anything
        params.validate()
        self.params = params

        # Build network architecture
        layer_sizes = ([input_size]
                       + [params.neurons_per_layer] * params.hidden_layers
                       + [1])
        self.layers = [Dense(layer_sizes[i], layer_sizes[i + 1])
                       for i in range(len(layer_sizes) - 1)]

        self.activation_fn = get_activation('relu')
        self.output_fn = get_activation('sigmoid')
        self.optimizer = StagedSGD(params.learning_rate, params.epochs)

        # Training history
        self.accuracy_history = []
        self.learning_rate_history = []
        self.epoch_count = 0

    def forward(self, X: np.ndarray) -> np.ndarray:
        """Forward pass through the network"""
        A = X
        self.cache = {'A_0': X}

        for i, layer in enumerate(self.layers):
            Z = layer.forward(A)
            self.cache[f'Z_{i}'] = Z

            if i < len(self.layers) - 1:
                A = self.activation_fn.forward(Z)
            else:
                A = self.output_fn.forward(Z)
            self.cache[f'A_{i + 1}'] = A

        return A

    def backward(self, X: np.ndarray, y: np.ndarray,
                 output: np.ndarray) -> Tuple[List[np.ndarray], List[np.ndarray]]:
        """
        Compute gradients for every layer.

        Uses the combined sigmoid + binary cross-entropy derivative at the
        output, so the loss itself is never evaluated.

        Args:
            X: Input batch (n_samples, n_features)
            y: Targets (n_samples, 1)
            output: Result of forward(X)

        Returns:
            Weight and bias gradients, one entry per layer
        """
        n_samples = X.shape[0]
        dZ = output - y

        dW = [None] * len(self.layers)
        db = [None] * len(self.layers)

        for l in reversed(range(len(self.layers))):
            A_prev = self.cache[f'A_{l}']

            dW[l] = np.dot(A_prev.T, dZ) / n_samples
            db[l] = np.sum(dZ, axis=0, keepdims=True) / n_samples

            if l > 0:
                dA = self.activation_fn.backward(self.cache[f'Z_{l-1}'])
                dZ = np.dot(dZ, self.layers[l].weights.T) * dA

        return dW, db

    def update(self, dW: List[np.ndarray], db: List[np.ndarray], epoch: int) -> float:
        """Apply the staged learning rate update, returning the rate used"""
        weights = [layer.weights for layer in self.layers]
        biases = [layer.biases for layer in self.layers]
        return self.optimizer.update(weights, biases, dW, db, epoch)

    def compute_accuracy(self, y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Fraction of rows whose thresholded prediction matches the label"""
        predicted = (y_pred >= DECISION_THRESHOLD).astype(float)
        matches = np.abs(predicted - y_true.reshape(predicted.shape)) < ACCURACY_TOLERANCE
        return float(np.mean(matches))

    def train(self, X: np.ndarray, y: np.ndarray,
              on_epoch: Optional[Callable[[float], None]] = None,
              verbose: bool = True, log_interval: int = 100,
              log_fn: Callable[[str], None] = print) -> float:
        """
        Run every epoch of full-batch gradient descent.

        Args:
            X: Training data (n_samples, n_features)
            y: Binary labels (n_samples,) or (n_samples, 1)
            on_epoch: Called with the accuracy after every epoch
            verbose: Whether to print training progress
            log_interval: Print progress every N epochs
            log_fn: Sink for progress lines

        Returns:
            Accuracy of the final epoch
        """
        y = np.asarray(y, dtype=np.float64).reshape(-1, 1)
        epochs = self.params.epochs
        start_time = time.time()

        for epoch in range(epochs):
            output = self.forward(X)
            accuracy = self.compute_accuracy(y, output)

            dW, db = self.backward(X, y, output)
            current_lr = self.update(dW, db, epoch)

            self.accuracy_history.append(accuracy)
            self.learning_rate_history.append(current_lr)
            self.epoch_count += 1

            # A failed send aborts the run
            if on_epoch is not None:
                on_epoch(accuracy)

            if verbose and ((epoch + 1) % log_interval == 0 or epoch == 0 or epoch == epochs - 1):
                time_elapsed = time.time() - start_time
                log_fn(
                    f"Epoch {epoch + 1:4d}/{epochs} | "
                    f"Acc: {accuracy * 100:6.2f}% | "
                    f"LR: {current_lr:.6f} | "
                    f"Elapsed: {time_elapsed:.1f}s"
                )

        return self.accuracy_history[-1]

    def predict(self, X: np.ndarray) -> np.ndarray:
        """Potability probabilities, shape (n_samples,)"""
        A = np.atleast_2d(np.asarray(X, dtype=np.float64))
        for i, layer in enumerate(self.layers):
            Z = layer.forward(A)
            if i < len(self.layers) - 1:
                A = self.activation_fn.forward(Z)
            else:
                A = self.output_fn.forward(Z)
        return A.ravel()

import numpy as np
from typing import Tuple


class Dense:
    """Fully connected layer"""
    
    def __init__(self, input_size: int, output_size: int, init_scale: float = 0.1):
        # Small random weights, zero biases
        self.weights = np.random.randn(input_size, output_size) * init_scale
        self.biases = np.zeros((1, output_size))
    
    def forward(self, X: np.ndarray) -> np.ndarray:
        """Forward pass: X @ W + b"""
        return np.dot(X, self.weights) + self.biases
    
    @property
    def shape(self) -> Tuple[int, int]:
        return self.weights.shape

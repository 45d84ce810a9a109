import numpy as np


class Activation:
    """Base activation function class"""
    
    def forward(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError
    
    def backward(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError


class ReLU(Activation):
    """ReLU activation function"""
    
    def forward(self, x: np.ndarray) -> np.ndarray:
        return np.maximum(0, x)
    
    def backward(self, x: np.ndarray) -> np.ndarray:
        return (x > 0).astype(float)


class Sigmoid(Activation):
    """Logistic sigmoid, used on the output layer"""
    
    def forward(self, x: np.ndarray) -> np.ndarray:
        # Clip to keep np.exp from overflowing on large negative inputs
        return 1.0 / (1.0 + np.exp(-np.clip(x, -500, 500)))
    
    def backward(self, x: np.ndarray) -> np.ndarray:
        s = self.forward(x)
        return s * (1.0 - s)


def get_activation(name: str) -> Activation:
    """Get activation function by name"""
    activations = {
        'relu': ReLU(),
        'sigmoid': Sigmoid()
    }
    
    if name not in activations:
        raise ValueError(f"Unknown activation function: {name}")
    
    return activations[name]

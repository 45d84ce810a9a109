import numpy as np
from typing import List


class Optimizer:
    """Base optimizer class"""
    
    def __init__(self, learning_rate: float = 0.5):
        self.learning_rate = learning_rate
    
    def update(self, weights: List[np.ndarray], biases: List[np.ndarray], 
               dW: List[np.ndarray], db: List[np.ndarray], epoch: int) -> float:
        raise NotImplementedError


class StagedSGD(Optimizer):
    """Plain gradient descent with a three-stage learning rate.

    The rate depends on the fraction of the run already elapsed:
    the full rate for the first 10% of epochs, half of it until 50%,
    and a tenth of it for the remainder.
    """
    
    stages = ((0.10, 1.0), (0.50, 0.5))
    final_factor = 0.1
    
    def __init__(self, learning_rate: float, total_epochs: int):
        super().__init__(learning_rate)
        self.total_epochs = total_epochs
    
    def rate_for_epoch(self, epoch: int) -> float:
        """Effective learning rate for a 0-indexed epoch"""
        fraction = epoch / self.total_epochs
        for threshold, factor in self.stages:
            if fraction < threshold:
                return self.learning_rate * factor
        return self.learning_rate * self.final_factor
    
    def update(self, weights: List[np.ndarray], biases: List[np.ndarray], 
               dW: List[np.ndarray], db: List[np.ndarray], epoch: int) -> float:
        """Update parameters in place and return the rate used"""
        rate = self.rate_for_epoch(epoch)
        
        for i in range(len(weights)):
            weights[i] -= dW[i] * rate
            biases[i] -= db[i] * rate
        
        return rate

from dataclasses import dataclass
from typing import Tuple

import numpy as np


STD_FLOOR = 1e-8


@dataclass(frozen=True)
class NormalizationStats:
    """Per-column mean and floored population std"""
    mean: np.ndarray
    std: np.ndarray


def compute_statistics(features: np.ndarray) -> NormalizationStats:
    features = np.asarray(features, dtype=np.float64)
    mean = np.mean(features, axis=0)
    std = np.maximum(np.std(features, axis=0), STD_FLOOR)
    return NormalizationStats(mean=mean, std=std)


def apply_normalization(features: np.ndarray, stats: NormalizationStats) -> np.ndarray:
    """Scale features with statistics computed elsewhere"""
    return (np.asarray(features, dtype=np.float64) - stats.mean) / stats.std


def normalize(features: np.ndarray) -> np.ndarray:
    """Z-score each column; constant columns become zeros"""
    return apply_normalization(features, compute_statistics(features))


def shuffle(features: np.ndarray, labels: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Shuffle rows with one permutation shared by features and labels"""
    indices = np.random.permutation(len(labels))
    return features[indices], labels[indices]

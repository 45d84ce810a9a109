import csv
import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from engine.errors import DataError


FEATURE_NAMES = (
    'ph', 'Hardness', 'Solids', 'Chloramines', 'Sulfate',
    'Conductivity', 'Organic_carbon', 'Trihalomethanes', 'Turbidity'
)
N_FEATURES = len(FEATURE_NAMES)


@dataclass
class Dataset:
    """Feature matrix (n_samples, 9) and binary label vector (n_samples,)"""
    features: np.ndarray
    labels: np.ndarray

    def __post_init__(self):
        if len(self.features) != len(self.labels):
            raise DataError(
                f"Feature/label row mismatch: {len(self.features)} vs {len(self.labels)}"
            )

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def n_features(self) -> int:
        return self.features.shape[1]


def _parse_row(row: List[str]) -> Optional[List[float]]:
    """Parse one data row into 10 floats, or None if it is malformed"""
    if len(row) != N_FEATURES + 1:
        return None
    try:
        values = [float(field) for field in row]
    except ValueError:
        return None
    # Empty cells and NaN/inf readings are missing measurements
    if not all(math.isfinite(v) for v in values):
        return None
    if values[-1] not in (0.0, 1.0):
        return None
    return values


def load_dataset(path: str, delimiter: str = ',') -> Dataset:
    """
    Load the water potability table.

    The first row is a header and is skipped. Each data row must hold nine
    numeric features followed by a 0 or 1 label; any other row is dropped.

    Args:
        path: Path to the delimited text file
        delimiter: Field separator

    Returns:
        Dataset with every valid row

    Raises:
        DataError: If the file cannot be read or holds no valid rows
    """
    rows = []
    try:
        with open(path, 'r', newline='', encoding='utf-8', errors='replace') as f:
            reader = csv.reader(f, delimiter=delimiter)
            next(reader, None)
            while True:
                try:
                    row = next(reader)
                except StopIteration:
                    break
                except csv.Error:
                    # Unparseable line; the reader has already moved past it
                    continue
                values = _parse_row(row)
                if values is not None:
                    rows.append(values)
    except (OSError, csv.Error) as e:
        raise DataError(f"Could not read dataset {path}: {e}") from e

    if not rows:
        raise DataError(f"No valid rows found in {path}")

    data = np.array(rows, dtype=np.float64)
    return Dataset(features=data[:, :N_FEATURES], labels=data[:, N_FEATURES])

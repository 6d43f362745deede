"""Utilities for top-k selection."""

from __future__ import annotations

import numpy as np


def topk_indices(values: np.ndarray, k: int, largest: bool = True) -> np.ndarray:
    """Return indices of the top-k values in sorted order.

    Ties keep index order, so rankings of identical energies are reproducible.
    """

    values = np.asarray(values, dtype=float)
    if k <= 0 or values.size == 0:
        return np.array([], dtype=int)

    k = min(k, values.shape[0])
    keys = -values if largest else values
    return np.argsort(keys, kind="stable")[:k]

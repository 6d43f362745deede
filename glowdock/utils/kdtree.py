"""KD-tree pair search used by the pairwise potentials."""

from __future__ import annotations

from typing import Any

import numpy as np
from scipy.spatial import cKDTree


def build_kdtree(points: np.ndarray) -> cKDTree:
    """Build a KD-tree over ``(n, 3)`` points."""

    return cKDTree(np.asarray(points, dtype=float))


def pairs_within(tree_a: Any, tree_b: Any, cutoff: float) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return ``(i, j, r)`` for every pair with ``r < cutoff``.

    ``i`` indexes ``tree_a`` and ``j`` indexes ``tree_b``. The open boundary is
    applied here (cKDTree itself keeps ``r <= cutoff``) and pairs are sorted by
    ``(i, j)`` so accumulation order does not depend on tree internals.
    """

    found = tree_a.sparse_distance_matrix(tree_b, cutoff, output_type="ndarray")
    if found.size == 0:
        empty = np.zeros(0, dtype=np.intp)
        return empty, empty.copy(), np.zeros(0, dtype=float)
    found = found[found["v"] < cutoff]
    order = np.lexsort((found["j"], found["i"]))
    found = found[order]
    return (
        np.asarray(found["i"], dtype=np.intp),
        np.asarray(found["j"], dtype=np.intp),
        np.asarray(found["v"], dtype=float),
    )

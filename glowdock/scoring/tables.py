"""Distance-binned pairwise potential tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from glowdock.errors import ParseError, ScoringLookupError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringTable:
    """Read-only lookup ``values[type_a, type_b, bin]``."""

    values: np.ndarray
    name: str = "table"

    def __post_init__(self) -> None:
        values = np.array(self.values, dtype=float)
        if values.ndim != 3 or values.shape[0] != values.shape[1]:
            raise ParseError(f"{self.name}: table must be shaped (n_types, n_types, n_bins), got {values.shape}")
        values.setflags(write=False)
        object.__setattr__(self, "values", values)

    @property
    def num_types(self) -> int:
        return int(self.values.shape[0])

    @property
    def num_bins(self) -> int:
        return int(self.values.shape[2])

    @classmethod
    def load(cls, path: str, shape: Tuple[int, int, int]) -> "ScoringTable":
        """Load a table from ``.npy`` or from text with one value per line."""

        try:
            if path.endswith(".npy"):
                raw = np.load(path, allow_pickle=False)
            else:
                raw = np.loadtxt(path, dtype=float, ndmin=1)
        except ValueError as exc:
            raise ParseError(f"{path}: unreadable scoring table ({exc})") from exc
        expected = int(np.prod(shape))
        if raw.size != expected:
            raise ParseError(f"{path}: found {raw.size} values, expected {expected} for shape {shape}")
        logger.info("Loaded scoring table %s %s", path, shape)
        return cls(values=np.asarray(raw, dtype=float).reshape(shape), name=path)

    def check_types(self, atom_types: np.ndarray, label: str) -> None:
        """Fail fast when a structure uses a type the table does not define."""

        atom_types = np.asarray(atom_types)
        if atom_types.size == 0:
            return
        bad = (atom_types < 0) | (atom_types >= self.num_types)
        if np.any(bad):
            first = int(np.flatnonzero(bad)[0])
            raise ScoringLookupError(
                f"{label}: atom {first} has type {int(atom_types[first])}, "
                f"table {self.name} defines {self.num_types} types"
            )

    def lookup(self, types_a: np.ndarray, types_b: np.ndarray, bins: np.ndarray) -> np.ndarray:
        """Vectorised lookup; out-of-range indices raise ``ScoringLookupError``."""

        if bins.size == 0:
            return np.zeros(0, dtype=float)
        if bins.min() < 0 or bins.max() >= self.num_bins:
            raise ScoringLookupError(
                f"{self.name}: distance bin outside [0, {self.num_bins}) "
                f"(got {int(bins.min())}..{int(bins.max())})"
            )
        for types in (types_a, types_b):
            if types.min() < 0 or types.max() >= self.num_types:
                raise ScoringLookupError(f"{self.name}: atom type outside [0, {self.num_types})")
        return self.values[types_a, types_b, bins]

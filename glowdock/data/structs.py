"""Core data structures for glowdock."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from glowdock.utils.geometry import apply_pose, receptor_pose_coordinates
from glowdock.utils.quaternion import Quaternion

MEMBRANE_BEAD = ("MMB", "BJ")


def _frozen(values: np.ndarray) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class Atom:
    """One atom of a prepared structure."""

    serial: int
    name: str
    residue_name: str
    chain_id: str
    residue_number: int
    insertion_code: str
    element: str
    coord: Tuple[float, float, float]
    atom_type: int

    @property
    def residue_id(self) -> str:
        """Residue identifier ``Chain.RESNAME.number[icode]``."""

        return f"{self.chain_id}.{self.residue_name}.{self.residue_number}{self.insertion_code}"

    @property
    def is_membrane_bead(self) -> bool:
        return (self.residue_name, self.name) == MEMBRANE_BEAD


class Structure:
    """Ordered, read-only collection of atoms with a rotation pivot."""

    def __init__(self, name: str, atoms: List[Atom]) -> None:
        if not atoms:
            raise ValueError(f"Structure '{name}' has no atoms.")
        self.name = name
        self._atoms = tuple(atoms)
        self.coords = _frozen([atom.coord for atom in atoms])
        self.center = _frozen(self.coords.mean(axis=0))
        types = np.array([atom.atom_type for atom in atoms], dtype=np.intp)
        types.setflags(write=False)
        self.atom_types = types

        residue_index: Dict[str, int] = {}
        per_atom: List[int] = []
        for atom in atoms:
            per_atom.append(residue_index.setdefault(atom.residue_id, len(residue_index)))
        self.residue_ids = tuple(residue_index)
        self._residue_positions = residue_index
        residues = np.array(per_atom, dtype=np.intp)
        residues.setflags(write=False)
        self.atom_residues = residues
        self.membrane_beads = np.array(
            [idx for idx, atom in enumerate(atoms) if atom.is_membrane_bead], dtype=np.intp
        )

    def __len__(self) -> int:
        return len(self._atoms)

    def __iter__(self):
        return iter(self._atoms)

    def __getitem__(self, idx: int) -> Atom:
        return self._atoms[idx]

    @property
    def num_atoms(self) -> int:
        return len(self._atoms)

    def residue_position(self, residue_id: str) -> int:
        """Index of a residue in ``residue_ids``; raises ``KeyError`` for unknown ids."""

        return self._residue_positions[residue_id]

    def transformed(self, pose: "Pose", modes: Optional["NormalModeSet"] = None) -> np.ndarray:
        """Ligand coordinates under ``pose``; the structure is left untouched."""

        return apply_pose(pose, self, modes)

    def flexed(self, pose: "Pose", modes: Optional["NormalModeSet"] = None) -> np.ndarray:
        """Receptor coordinates under ``pose`` (normal modes only)."""

        return receptor_pose_coordinates(pose, self, modes)


@dataclass(frozen=True)
class NormalModeSet:
    """Per-atom displacement vectors ``(n_modes, n_atoms, 3)`` and extent bounds."""

    vectors: np.ndarray
    extent: float

    def __post_init__(self) -> None:
        vectors = np.array(self.vectors, dtype=float)
        if vectors.ndim != 3 or vectors.shape[2] != 3:
            raise ValueError(f"Normal modes must be shaped (n_modes, n_atoms, 3), got {vectors.shape}.")
        if not self.extent > 0:
            raise ValueError(f"Normal mode extent must be positive, got {self.extent}.")
        vectors.setflags(write=False)
        object.__setattr__(self, "vectors", vectors)

    @property
    def num_modes(self) -> int:
        return int(self.vectors.shape[0])

    @property
    def num_atoms(self) -> int:
        return int(self.vectors.shape[1])

    def clamp(self, extents: np.ndarray) -> np.ndarray:
        return np.clip(np.asarray(extents, dtype=float), -self.extent, self.extent)


@dataclass(frozen=True)
class Pose:
    """Candidate placement: translation, unit rotation and normal mode extents."""

    translation: np.ndarray
    rotation: Quaternion = field(default_factory=Quaternion)
    rec_extents: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=float))
    lig_extents: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=float))

    def __post_init__(self) -> None:
        translation = _frozen(self.translation)
        if translation.shape != (3,):
            raise ValueError(f"Translation must have 3 components, got {translation.shape}.")
        object.__setattr__(self, "translation", translation)
        object.__setattr__(self, "rotation", self.rotation.normalized())
        object.__setattr__(self, "rec_extents", _frozen(self.rec_extents).reshape(-1))
        object.__setattr__(self, "lig_extents", _frozen(self.lig_extents).reshape(-1))

    @classmethod
    def identity(cls, num_rec_modes: int = 0, num_lig_modes: int = 0) -> "Pose":
        return cls(
            translation=np.zeros(3),
            rotation=Quaternion(),
            rec_extents=np.zeros(num_rec_modes),
            lig_extents=np.zeros(num_lig_modes),
        )

    def as_list(self) -> List[float]:
        """Flat pose vector in pose-file order."""

        return [
            *self.translation.tolist(),
            *self.rotation.as_array().tolist(),
            *self.rec_extents.tolist(),
            *self.lig_extents.tolist(),
        ]

    def move_towards(
        self,
        other: "Pose",
        translation_step: float,
        rotation_step: float,
        nmodes_step: float,
        rec_modes: Optional[NormalModeSet] = None,
        lig_modes: Optional[NormalModeSet] = None,
    ) -> "Pose":
        """Return a new pose moved a fixed step towards ``other``."""

        translation = _step_towards(self.translation, other.translation, translation_step)
        rotation = self.rotation.slerp(other.rotation, rotation_step)
        rec_extents = _step_towards(self.rec_extents, other.rec_extents, nmodes_step)
        lig_extents = _step_towards(self.lig_extents, other.lig_extents, nmodes_step)
        if rec_modes is not None:
            rec_extents = rec_modes.clamp(rec_extents)
        if lig_modes is not None:
            lig_extents = lig_modes.clamp(lig_extents)
        return Pose(translation, rotation, rec_extents, lig_extents)


def _step_towards(current: np.ndarray, target: np.ndarray, step: float) -> np.ndarray:
    delta = np.asarray(target, dtype=float) - current
    norm = float(np.linalg.norm(delta))
    if norm == 0.0:
        return np.array(current, dtype=float)
    return current + delta * (step / norm)

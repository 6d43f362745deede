"""Scoring function interface shared by the pairwise potentials."""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from glowdock.constants import DATA_DIR_ENV, DEFAULT_DATA_DIR, INTERFACE_CUTOFF, MEMBRANE_PENALTY_SCORE
from glowdock.data.structs import NormalModeSet, Structure
from glowdock.errors import ConfigurationError
from glowdock.scoring.restraints import ResolvedRestraints
from glowdock.scoring.tables import ScoringTable
from glowdock.utils.kdtree import build_kdtree, pairs_within

logger = logging.getLogger(__name__)


def resolve_data_dir(data_dir: Optional[str] = None) -> str:
    """Potential tables directory: explicit value, then ``$GLOWDOCK_DATA``, then ``data``."""

    return data_dir or os.environ.get(DATA_DIR_ENV) or DEFAULT_DATA_DIR


@dataclass
class DockingModel:
    """A structure prepared for scoring: its normal modes and a cached KD-tree."""

    structure: Structure
    modes: Optional[NormalModeSet] = None
    tree: Any = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.modes is not None and self.modes.num_atoms != self.structure.num_atoms:
            raise ConfigurationError(
                f"{self.structure.name}: {self.modes.num_atoms} atoms in normal modes, "
                f"{self.structure.num_atoms} in the structure"
            )
        self.tree = build_kdtree(self.structure.coords)

    @property
    def num_modes(self) -> int:
        return 0 if self.modes is None else self.modes.num_modes


@dataclass(frozen=True)
class Interaction:
    """Outcome of one pose evaluation before restraint and membrane terms."""

    energy: float
    num_pairs: int
    rec_residues: np.ndarray
    lig_residues: np.ndarray
    rec_interface: np.ndarray
    lig_interface: np.ndarray


class ScoringFunction(ABC):
    """Pairwise distance-binned potential: ``energy = f(sum table[a, b, bin(r)])``.

    Lower energies are better. Only pairs with ``r < cutoff`` contribute.
    """

    name: str = ""
    table_file: str = ""
    num_types: int = 0
    num_bins: int = 20
    cutoff: float = 15.0

    def __init__(self, table: ScoringTable, interface_cutoff: float = INTERFACE_CUTOFF) -> None:
        expected = (self.num_types, self.num_types, self.num_bins)
        if table.values.shape != expected:
            raise ConfigurationError(
                f"{self.name}: table {table.name} has shape {table.values.shape}, expected {expected}"
            )
        if not 0 < interface_cutoff < self.cutoff:
            raise ConfigurationError(
                f"interface_cutoff must be in (0, {self.cutoff}), got {interface_cutoff}"
            )
        self.table = table
        self.interface_cutoff = float(interface_cutoff)

    @classmethod
    def load(cls, data_dir: Optional[str] = None, interface_cutoff: float = INTERFACE_CUTOFF) -> "ScoringFunction":
        """Build the potential from its table file under ``data_dir``."""

        folder = resolve_data_dir(data_dir)
        path = os.path.join(folder, cls.table_file)
        if not os.path.exists(path) and os.path.exists(path + ".npy"):
            path = path + ".npy"
        table = ScoringTable.load(path, (cls.num_types, cls.num_types, cls.num_bins))
        return cls(table, interface_cutoff=interface_cutoff)

    @abstractmethod
    def classify(self, residue_name: str, atom_name: str, element: str) -> int:
        """Atom type index of an atom, used to index the table."""

    @abstractmethod
    def distance_bins(self, distances: np.ndarray) -> np.ndarray:
        """Map distances ``r < cutoff`` to table bin indices."""

    def finalize(self, raw: float) -> float:
        """Convert the raw table sum into an energy."""

        return raw

    def prepare(self, structure: Structure, modes: Optional[NormalModeSet] = None) -> DockingModel:
        """Bind a structure to this potential, checking every atom type up front."""

        self.table.check_types(structure.atom_types, structure.name)
        return DockingModel(structure=structure, modes=modes)

    def evaluate(
        self,
        receptor: DockingModel,
        ligand: DockingModel,
        receptor_coords: np.ndarray,
        ligand_coords: np.ndarray,
    ) -> Interaction:
        """Sum the table over all receptor-ligand pairs within the cutoff."""

        if receptor_coords is receptor.structure.coords:
            rec_tree = receptor.tree
        else:
            rec_tree = build_kdtree(receptor_coords)
        lig_tree = build_kdtree(ligand_coords)
        rec_idx, lig_idx, dists = pairs_within(rec_tree, lig_tree, self.cutoff)

        bins = self.distance_bins(dists)
        contributions = self.table.lookup(
            receptor.structure.atom_types[rec_idx], ligand.structure.atom_types[lig_idx], bins
        )
        energy = self.finalize(float(np.sum(contributions)))

        contact = dists <= self.interface_cutoff
        rec_interface = np.zeros(receptor.structure.num_atoms, dtype=bool)
        lig_interface = np.zeros(ligand.structure.num_atoms, dtype=bool)
        rec_interface[rec_idx[contact]] = True
        lig_interface[lig_idx[contact]] = True
        return Interaction(
            energy=energy,
            num_pairs=int(dists.size),
            rec_residues=receptor.structure.atom_residues[rec_idx[contact]],
            lig_residues=ligand.structure.atom_residues[lig_idx[contact]],
            rec_interface=rec_interface,
            lig_interface=lig_interface,
        )

    def membrane_penalty(self, receptor: DockingModel, interaction: Interaction) -> float:
        """Penalty proportional to the fraction of membrane beads at the interface."""

        beads = receptor.structure.membrane_beads
        if beads.size == 0:
            return 0.0
        fraction = float(np.mean(interaction.rec_interface[beads]))
        return MEMBRANE_PENALTY_SCORE * fraction

    def score(
        self,
        receptor: DockingModel,
        ligand: DockingModel,
        receptor_coords: np.ndarray,
        ligand_coords: np.ndarray,
        restraints: Optional[ResolvedRestraints] = None,
    ) -> float:
        """Energy of a pose; restraint and membrane terms only ever add to it."""

        interaction = self.evaluate(receptor, ligand, receptor_coords, ligand_coords)
        energy = interaction.energy + self.membrane_penalty(receptor, interaction)
        if restraints is not None:
            energy += restraints.penalty_for(interaction.rec_residues, interaction.lig_residues)
        return energy

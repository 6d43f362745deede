"""Residue restraints that bias the energy of poses missing key contacts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from glowdock.constants import DEFAULT_RESTRAINTS_PENALTY
from glowdock.data.structs import Structure
from glowdock.errors import ConfigurationError

PASSIVE = 1
ACTIVE = 2


@dataclass(frozen=True)
class RestraintSet:
    """Active/passive residue ids per partner and the satisfaction threshold."""

    receptor_active: List[str] = field(default_factory=list)
    receptor_passive: List[str] = field(default_factory=list)
    ligand_active: List[str] = field(default_factory=list)
    ligand_passive: List[str] = field(default_factory=list)
    min_satisfied: int = 1
    penalty: float = DEFAULT_RESTRAINTS_PENALTY

    @classmethod
    def from_config(
        cls,
        receptor: Optional[Dict[str, List[str]]],
        ligand: Optional[Dict[str, List[str]]],
        min_satisfied: int = 1,
        penalty: float = DEFAULT_RESTRAINTS_PENALTY,
    ) -> Optional["RestraintSet"]:
        """Build from the setup dictionaries; ``None`` when no active residue is declared."""

        receptor = receptor or {}
        ligand = ligand or {}
        restraints = cls(
            receptor_active=list(receptor.get("active") or []),
            receptor_passive=list(receptor.get("passive") or []),
            ligand_active=list(ligand.get("active") or []),
            ligand_passive=list(ligand.get("passive") or []),
            min_satisfied=int(min_satisfied),
            penalty=float(penalty),
        )
        if not restraints.num_active:
            return None
        return restraints

    @property
    def num_active(self) -> int:
        return len(self.receptor_active) + len(self.ligand_active)

    def resolve(self, receptor: Structure, ligand: Structure) -> "ResolvedRestraints":
        """Map residue ids onto per-residue flags; unknown ids are configuration errors."""

        if self.min_satisfied < 0 or self.min_satisfied > self.num_active:
            raise ConfigurationError(
                f"restraints_min_satisfied must be in [0, {self.num_active}], got {self.min_satisfied}"
            )
        if not self.penalty > 0:
            raise ConfigurationError(f"restraints_penalty must be positive, got {self.penalty}")
        return ResolvedRestraints(
            receptor_flags=_residue_flags(receptor, self.receptor_active, self.receptor_passive),
            ligand_flags=_residue_flags(ligand, self.ligand_active, self.ligand_passive),
            min_satisfied=self.min_satisfied,
            penalty=self.penalty,
        )


def _residue_flags(structure: Structure, active: List[str], passive: List[str]) -> np.ndarray:
    flags = np.zeros(len(structure.residue_ids), dtype=np.int8)
    for value, residue_ids in ((PASSIVE, passive), (ACTIVE, active)):
        for residue_id in residue_ids:
            try:
                position = structure.residue_position(residue_id)
            except KeyError:
                raise ConfigurationError(
                    f"Restraint references unknown {structure.name} residue '{residue_id}'"
                ) from None
            flags[position] = max(flags[position], value)
    return flags


@dataclass(frozen=True)
class ResolvedRestraints:
    """Restraints bound to a receptor/ligand pair."""

    receptor_flags: np.ndarray
    ligand_flags: np.ndarray
    min_satisfied: int
    penalty: float

    def satisfied(self, rec_residues: np.ndarray, lig_residues: np.ndarray) -> int:
        """Count active residues in contact with an active or passive partner residue.

        A partner without any declared residue accepts a contact with any of its
        atoms. ``rec_residues[k]`` and ``lig_residues[k]`` are the residues of the
        k-th interface atom pair.
        """

        if rec_residues.size == 0:
            return 0
        rec_flag = self.receptor_flags[rec_residues]
        lig_flag = self.ligand_flags[lig_residues]
        rec_partner = lig_flag > 0 if self.ligand_flags.any() else np.ones(lig_flag.shape, dtype=bool)
        lig_partner = rec_flag > 0 if self.receptor_flags.any() else np.ones(rec_flag.shape, dtype=bool)
        rec_satisfied = np.unique(rec_residues[(rec_flag == ACTIVE) & rec_partner]).size
        lig_satisfied = np.unique(lig_residues[(lig_flag == ACTIVE) & lig_partner]).size
        return int(rec_satisfied + lig_satisfied)

    def penalty_for(self, rec_residues: np.ndarray, lig_residues: np.ndarray) -> float:
        """Additive, never negative, energy penalty for the contact shortfall."""

        shortfall = self.min_satisfied - self.satisfied(rec_residues, lig_residues)
        return self.penalty * max(0, shortfall)

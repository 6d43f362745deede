"""Nucleic-acid aware potential for protein-DNA/RNA docking."""

from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from glowdock.scoring.base import ScoringFunction
from glowdock.scoring.dfire import DFIRE_ATOM_TYPES, NUM_DFIRE_TYPES

NUCLEOTIDE_BASES: Dict[str, str] = {
    "DA": "A", "A": "A", "ADE": "A", "RA": "A",
    "DC": "C", "C": "C", "CYT": "C", "RC": "C",
    "DG": "G", "G": "G", "GUA": "G", "RG": "G",
    "DT": "T", "T": "T", "THY": "T",
    "DU": "U", "U": "U", "URA": "U", "RU": "U",
}

BACKBONE_ATOMS = ("P", "OP1", "OP2", "O5'", "C5'", "C4'", "O4'", "C3'", "O3'", "C2'", "C1'", "O2'")
BASE_ATOMS: Dict[str, Tuple[str, ...]] = {
    "A": ("N9", "C8", "N7", "C5", "C6", "N6", "N1", "C2", "N3", "C4"),
    "C": ("N1", "C2", "O2", "N3", "C4", "N4", "C5", "C6"),
    "G": ("N9", "C8", "N7", "C5", "C6", "O6", "N1", "C2", "N2", "N3", "C4"),
    "T": ("N1", "C2", "O2", "N3", "C4", "O4", "C5", "C7", "C6"),
    "U": ("N1", "C2", "O2", "N3", "C4", "O4", "C5", "C6"),
}
ATOM_ALIASES = {"O1P": "OP1", "O2P": "OP2", "C5M": "C7"}
GENERIC_ELEMENTS = ("C", "N", "O", "S", "P", "X")


def _build_nucleic_types() -> Tuple[Dict[str, int], Dict[Tuple[str, str], int]]:
    next_type = NUM_DFIRE_TYPES
    backbone: Dict[str, int] = {}
    for atom in BACKBONE_ATOMS:
        backbone[atom] = next_type
        next_type += 1
    bases: Dict[Tuple[str, str], int] = {}
    for base, atoms in BASE_ATOMS.items():
        for atom in atoms:
            bases[(base, atom)] = next_type
            next_type += 1
    return backbone, bases


BACKBONE_TYPES, BASE_TYPES = _build_nucleic_types()
FIRST_GENERIC_TYPE = NUM_DFIRE_TYPES + len(BACKBONE_TYPES) + len(BASE_TYPES)
GENERIC_TYPES = {element: FIRST_GENERIC_TYPE + idx for idx, element in enumerate(GENERIC_ELEMENTS)}
NUM_DNA_TYPES = FIRST_GENERIC_TYPE + len(GENERIC_ELEMENTS)


class DNA(ScoringFunction):
    """Protein and nucleotide atom types, 0.75 A bins up to 15 A.

    Atoms outside the fixed tables fall back to a generic type per element,
    so ions or modified residues are scored instead of rejected.
    """

    name = "dna"
    table_file = "DNAparams"
    num_types = NUM_DNA_TYPES
    num_bins = 20
    cutoff = 15.0

    def classify(self, residue_name: str, atom_name: str, element: str) -> int:
        protein_type = DFIRE_ATOM_TYPES.get((residue_name, atom_name))
        if protein_type is not None:
            return protein_type
        base = NUCLEOTIDE_BASES.get(residue_name)
        if base is not None:
            atom = ATOM_ALIASES.get(atom_name, atom_name.replace("*", "'"))
            if atom in BACKBONE_TYPES:
                return BACKBONE_TYPES[atom]
            if (base, atom) in BASE_TYPES:
                return BASE_TYPES[(base, atom)]
        return GENERIC_TYPES.get(element[:1].upper(), GENERIC_TYPES["X"])

    def distance_bins(self, distances: np.ndarray) -> np.ndarray:
        width = self.cutoff / self.num_bins
        return np.floor(np.asarray(distances, dtype=float) / width).astype(np.intp)

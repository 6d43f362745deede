"""DFIRE statistical potential for protein-protein docking."""

from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from glowdock.errors import ParseError
from glowdock.scoring.base import ScoringFunction

# Heavy atoms per residue, in DFIRE atom order. The type of an atom is the
# residue's first type plus the atom position.
RESIDUE_ATOMS: Dict[str, Tuple[int, Tuple[str, ...]]] = {
    "CYS": (0, ("N", "CA", "C", "O", "CB", "SG")),
    "MET": (6, ("N", "CA", "C", "O", "CB", "CG", "SD", "CE")),
    "PHE": (14, ("N", "CA", "C", "O", "CB", "CG", "CD1", "CD2", "CE1", "CE2", "CZ")),
    "ILE": (25, ("N", "CA", "C", "O", "CB", "CG1", "CG2", "CD1")),
    "LEU": (33, ("N", "CA", "C", "O", "CB", "CG", "CD1", "CD2")),
    "VAL": (41, ("N", "CA", "C", "O", "CB", "CG1", "CG2")),
    "TRP": (48, ("N", "CA", "C", "O", "CB", "CG", "CD1", "CD2", "CE2", "NE1", "CE3", "CZ3", "CH2", "CZ2")),
    "TYR": (62, ("N", "CA", "C", "O", "CB", "CG", "CD1", "CD2", "CE1", "CE2", "CZ", "OH")),
    "ALA": (74, ("N", "CA", "C", "O", "CB")),
    "GLY": (79, ("N", "CA", "C", "O")),
    "THR": (83, ("N", "CA", "C", "O", "CB", "OG1", "CG2")),
    "SER": (90, ("N", "CA", "C", "O", "CB", "OG")),
    "GLN": (96, ("N", "CA", "C", "O", "CB", "CG", "CD", "OE1", "NE2")),
    "ASN": (105, ("N", "CA", "C", "O", "CB", "CG", "OD1", "ND2")),
    "GLU": (113, ("N", "CA", "C", "O", "CB", "CG", "CD", "OE1", "OE2")),
    "ASP": (122, ("N", "CA", "C", "O", "CB", "CG", "OD1", "OD2")),
    "HIS": (130, ("N", "CA", "C", "O", "CB", "CG", "ND1", "CD2", "CE1", "NE2")),
    "ARG": (140, ("N", "CA", "C", "O", "CB", "CG", "CD", "NE", "CZ", "NH1", "NH2")),
    "LYS": (151, ("N", "CA", "C", "O", "CB", "CG", "CD", "CE", "NZ")),
    "PRO": (160, ("N", "CA", "C", "O", "CB", "CG", "CD")),
    "MMB": (167, ("BJ",)),
}

DFIRE_ATOM_TYPES: Dict[Tuple[str, str], int] = {
    (residue, atom): first + offset
    for residue, (first, atoms) in RESIDUE_ATOMS.items()
    for offset, atom in enumerate(atoms)
}

NUM_DFIRE_TYPES = 168

# Bin of d = 2r - 1; only the first 29 entries are reachable below 15 A.
DIST_TO_BINS = np.array(
    [1, 1, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 14, 15, 15,
     16, 16, 17, 17, 18, 18, 19, 19, 20, 20, 21, 21, 22, 22, 23, 23,
     24, 24, 25, 25, 26, 26, 27, 27, 28, 28, 29, 29, 30, 30, 31],
    dtype=np.intp,
) - 1


class DFIRE(ScoringFunction):
    """Residue-specific all-atom DFIRE potential (168 types, 20 bins)."""

    name = "dfire"
    table_file = "DCparams"
    num_types = NUM_DFIRE_TYPES
    num_bins = 20
    cutoff = 15.0

    def classify(self, residue_name: str, atom_name: str, element: str) -> int:
        try:
            return DFIRE_ATOM_TYPES[(residue_name, atom_name)]
        except KeyError:
            raise ParseError(f"atom {residue_name} {atom_name} not supported by DFIRE") from None

    def distance_bins(self, distances: np.ndarray) -> np.ndarray:
        d = np.asarray(distances, dtype=float) * 2.0 - 1.0
        index = np.maximum(np.trunc(d), 0.0).astype(np.intp)
        return DIST_TO_BINS[index]

    def finalize(self, raw: float) -> float:
        return raw * 0.0157 - 4.7

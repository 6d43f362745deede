"""Shared fixtures: tiny prepared structures, synthetic potential tables and swarm files."""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple

import numpy as np
import pytest

from glowdock.scoring.dfire import NUM_DFIRE_TYPES
from glowdock.scoring.dna import NUM_DNA_TYPES

AtomSpec = Tuple[str, str, str, int, Tuple[float, float, float]]

ALA_ATOMS = [
    ("N", (0.0, 0.0, 0.0)),
    ("CA", (1.46, 0.0, 0.0)),
    ("C", (2.0, 1.42, 0.0)),
    ("O", (1.25, 2.39, 0.0)),
    ("CB", (2.0, -0.77, 1.2)),
]
GLY_ATOMS = [
    ("N", (3.33, 1.5, 0.0)),
    ("CA", (3.97, 2.8, 0.0)),
    ("C", (5.4, 2.6, 0.3)),
    ("O", (6.0, 1.6, 0.5)),
]

# PT-BR: o ligante fica 8 A à frente; só o GLY A 2 do receptor toca o ligante.
LIGAND_SHIFT = np.array([8.0, 0.0, 0.0])


def pdb_line(serial: int, name: str, resname: str, chain: str, resnum: int, xyz: Sequence[float]) -> str:
    element = name.lstrip("0123456789")[:1]
    x, y, z = xyz
    return (
        f"ATOM  {serial:5d} {name:<4} {resname:>3} {chain}{resnum:4d}    "
        f"{x:8.3f}{y:8.3f}{z:8.3f}  1.00  0.00          {element:>2}"
    )


def write_pdb(path, atoms: Iterable[AtomSpec]) -> str:
    lines = [pdb_line(idx, *atom) for idx, atom in enumerate(atoms, start=1)]
    path.write_text("\n".join(lines + ["END"]) + "\n", encoding="utf-8")
    return str(path)


def receptor_atoms() -> list:
    atoms = [(name, "ALA", "A", 1, xyz) for name, xyz in ALA_ATOMS]
    atoms += [(name, "GLY", "A", 2, xyz) for name, xyz in GLY_ATOMS]
    return atoms


def ligand_atoms() -> list:
    return [(name, "ALA", "B", 1, tuple(np.add(xyz, LIGAND_SHIFT))) for name, xyz in ALA_ATOMS]


def write_swarm(path, poses: Iterable[Sequence[float]]) -> str:
    lines = ["# x y z qw qx qy qz extents"]
    lines += [" ".join(f"{value:.8f}" for value in pose) for pose in poses]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


def random_poses(count: int, seed: int = 7, spread: float = 1.5) -> list:
    rng = np.random.default_rng(seed)
    poses = []
    for _ in range(count):
        translation = rng.uniform(-spread, spread, size=3)
        rotation = rng.normal(size=4)
        rotation /= np.linalg.norm(rotation)
        poses.append([*translation, *rotation])
    return poses


def binned_table(num_types: int) -> np.ndarray:
    """Contacts get more favourable the closer they are."""

    profile = -np.arange(20, 0, -1, dtype=np.float32)
    return np.broadcast_to(profile, (num_types, num_types, 20)).copy()


@pytest.fixture
def receptor_pdb(tmp_path):
    return write_pdb(tmp_path / "receptor.pdb", receptor_atoms())


@pytest.fixture
def ligand_pdb(tmp_path):
    return write_pdb(tmp_path / "ligand.pdb", ligand_atoms())


@pytest.fixture
def data_dir(tmp_path):
    folder = tmp_path / "data"
    folder.mkdir()
    np.save(folder / "DCparams.npy", binned_table(NUM_DFIRE_TYPES))
    return str(folder)


@pytest.fixture
def dna_data_dir(tmp_path):
    folder = tmp_path / "dna_data"
    folder.mkdir()
    np.save(folder / "DNAparams.npy", binned_table(NUM_DNA_TYPES))
    return str(folder)


@pytest.fixture
def dfire(data_dir):
    from glowdock.scoring import build_scoring_function

    return build_scoring_function("dfire", data_dir)


@pytest.fixture
def models(dfire, receptor_pdb, ligand_pdb):
    from glowdock.data.io import load_structures

    receptor, ligand = load_structures(receptor_pdb, ligand_pdb, dfire)
    return dfire.prepare(receptor), dfire.prepare(ligand)

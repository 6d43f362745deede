"""I/O helpers for glowdock: configuration, structures, poses and normal modes."""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, List, Optional, Protocol, Tuple

import numpy as np
import yaml

from glowdock.data.structs import Atom, NormalModeSet, Pose, Structure
from glowdock.errors import ConfigurationError, ParseError
from glowdock.utils.quaternion import Quaternion

logger = logging.getLogger(__name__)

_SWARM_FILE_RE = re.compile(r"^initial_positions_(\d+)\.dat$")


class AtomTyper(Protocol):
    """Classifies an atom into a scoring table type index."""

    def classify(self, residue_name: str, atom_name: str, element: str) -> int:
        ...


def load_config(path: str) -> Dict[str, Any]:
    """Load a YAML (or JSON) configuration file."""

    with open(path, "r", encoding="utf-8") as handle:
        try:
            return yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ParseError(f"{path}: invalid configuration file ({exc})") from exc


def _parse_atom_line(line: str, typer: AtomTyper) -> Atom:
    try:
        x = float(line[30:38])
        y = float(line[38:46])
        z = float(line[46:54])
    except ValueError as exc:
        raise ParseError(f"malformed coordinates '{line[30:54].strip()}'") from exc
    try:
        serial = int(line[6:11])
        residue_number = int(line[22:26])
    except ValueError as exc:
        raise ParseError("malformed atom serial or residue number") from exc
    name = line[12:16].strip()
    residue_name = line[17:21].strip()
    element = line[76:78].strip() if len(line) >= 78 else ""
    if not element:
        element = name.lstrip("0123456789")[:1]
    atom_type = typer.classify(residue_name, name, element.upper())
    return Atom(
        serial=serial,
        name=name,
        residue_name=residue_name,
        chain_id=line[21:22].strip(),
        residue_number=residue_number,
        insertion_code=line[26:27].strip(),
        element=element.upper(),
        coord=(x, y, z),
        atom_type=atom_type,
    )


def load_structure(path: str, name: str, typer: AtomTyper) -> Structure:
    """Parse ATOM/HETATM records of the first model of a PDB file.

    Raises ``ParseError`` naming the file and line for malformed records or
    atoms the typer rejects.
    """

    atoms: List[Atom] = []
    with open(path, "r", encoding="utf-8") as handle:
        for lineno, raw_line in enumerate(handle, start=1):
            line = raw_line.rstrip("\n")
            record = line[:6].strip().upper()
            if record == "ENDMDL":
                break
            if record not in {"ATOM", "HETATM"}:
                continue
            try:
                atoms.append(_parse_atom_line(line, typer))
            except ParseError as exc:
                raise ParseError(f"{path}:{lineno}: {exc}") from exc

    if not atoms:
        raise ParseError(f"{path}: no ATOM/HETATM records found")
    logger.info("Read %d atoms from %s", len(atoms), path)
    return Structure(name, atoms)


def load_structures(receptor_path: str, ligand_path: str, typer: AtomTyper) -> Tuple[Structure, Structure]:
    """Load the receptor and ligand structures."""

    return (
        load_structure(receptor_path, "receptor", typer),
        load_structure(ligand_path, "ligand", typer),
    )


def load_normal_modes(path: str, num_modes: int, num_atoms: int, extent: float) -> NormalModeSet:
    """Load ``num_modes`` normal modes for ``num_atoms`` atoms from a ``.npy`` file.

    Both the ``(n_modes, n_atoms, 3)`` layout and its flattened form are accepted.
    """

    try:
        raw = np.load(path, allow_pickle=False)
    except ValueError as exc:
        raise ParseError(f"{path}: not a valid .npy array ({exc})") from exc
    expected = num_modes * num_atoms * 3
    if raw.size != expected:
        raise ConfigurationError(
            f"{path}: found {raw.size} values, expected {num_modes} modes x {num_atoms} atoms x 3"
        )
    if not extent > 0:
        raise ConfigurationError(f"Normal mode extent must be positive, got {extent}")
    return NormalModeSet(vectors=np.asarray(raw, dtype=float).reshape(num_modes, num_atoms, 3), extent=extent)


def _clamp_extents(
    values: np.ndarray, modes: Optional[NormalModeSet], path: str, lineno: int
) -> np.ndarray:
    if modes is None or values.size == 0:
        return values
    clamped = modes.clamp(values)
    if not np.array_equal(clamped, values):
        logger.warning("%s:%d: extents clamped to +/-%.3f", path, lineno, modes.extent)
    return clamped


def load_poses(
    path: str,
    num_rec_modes: int = 0,
    num_lig_modes: int = 0,
    rec_modes: Optional[NormalModeSet] = None,
    lig_modes: Optional[NormalModeSet] = None,
) -> List[Pose]:
    """Read starting poses, one per line.

    Fields: translation (3), quaternion ``w x y z`` (4), receptor extents,
    ligand extents. Blank lines and ``#`` comments are skipped. Quaternions
    are normalized and extents clamped to the normal mode bounds.
    """

    num_extents = num_rec_modes + num_lig_modes
    expected = 7 + num_extents
    poses: List[Pose] = []
    with open(path, "r", encoding="utf-8") as handle:
        for lineno, raw_line in enumerate(handle, start=1):
            line = raw_line.split("#", 1)[0].strip()
            if not line:
                continue
            try:
                values = np.array([float(token) for token in line.split()], dtype=float)
            except ValueError as exc:
                raise ParseError(f"{path}:{lineno}: non-numeric pose field") from exc
            if values.size < expected or (num_extents and values.size != expected):
                raise ParseError(
                    f"{path}:{lineno}: expected {expected} fields, found {values.size}"
                )
            if not np.all(np.isfinite(values[:expected])):
                raise ParseError(f"{path}:{lineno}: pose fields must be finite")
            rotation = Quaternion.from_array(values[3:7])
            if rotation.norm() == 0.0:
                raise ParseError(f"{path}:{lineno}: zero rotation quaternion")
            rec = _clamp_extents(values[7 : 7 + num_rec_modes], rec_modes, path, lineno)
            lig = _clamp_extents(values[7 + num_rec_modes : expected], lig_modes, path, lineno)
            poses.append(Pose(values[:3], rotation, rec, lig))

    if not poses:
        raise ParseError(f"{path}: no starting poses found")
    return poses


def parse_swarm_id(path: str) -> Optional[int]:
    """Swarm id from an ``initial_positions_<id>.dat`` file name."""

    match = _SWARM_FILE_RE.match(os.path.basename(path))
    return int(match.group(1)) if match else None

"""Geometry helpers: rigid transforms, normal mode deformation and pose application."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:
    from glowdock.data.structs import NormalModeSet, Pose, Structure


def pairwise_dist(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Compute pairwise Euclidean distances."""

    diff = a[:, None, :] - b[None, :, :]
    return np.sqrt(np.sum(diff**2, axis=-1))


def apply_transform(
    coords: np.ndarray, rot_matrix: np.ndarray, translation: np.ndarray
) -> np.ndarray:
    """Apply a rigid transform to coordinates."""

    rotated = np.asarray(coords, dtype=float) @ np.asarray(rot_matrix, dtype=float).T
    return rotated + np.asarray(translation, dtype=float)


def deform(coords: np.ndarray, modes: Optional["NormalModeSet"], extents: np.ndarray) -> np.ndarray:
    """Displace every atom by ``sum_k extents[k] * modes[k]``.

    Returns ``coords`` itself when there is nothing to apply, so callers can
    detect an undeformed structure by identity.
    """

    extents = np.asarray(extents, dtype=float)
    if modes is None or extents.size == 0 or modes.num_modes == 0:
        return coords
    if extents.shape[0] != modes.num_modes:
        raise ValueError(
            f"Expected {modes.num_modes} extent coefficients, got {extents.shape[0]}."
        )
    return coords + np.tensordot(extents, modes.vectors, axes=(0, 0))


def apply_pose(
    pose: "Pose", structure: "Structure", modes: Optional["NormalModeSet"] = None
) -> np.ndarray:
    """Materialize ligand coordinates for a pose.

    Order is flex, then rotation about the structure center, then translation:
    ``x' = R (x + D·e - c) + c + t``. The identity pose returns the structure
    coordinates unchanged.
    """

    center = structure.center
    flexed = deform(structure.coords, modes, pose.lig_extents)
    return pose.rotation.rotate(flexed - center) + center + pose.translation


def receptor_pose_coordinates(
    pose: "Pose", structure: "Structure", modes: Optional["NormalModeSet"] = None
) -> np.ndarray:
    """Receptor coordinates for a pose; the receptor only flexes."""

    return deform(structure.coords, modes, pose.rec_extents)


def invert_pose(coords: np.ndarray, pose: "Pose", center: np.ndarray) -> np.ndarray:
    """Undo the rigid part of :func:`apply_pose` (translate by -t, rotate by the conjugate)."""

    back = np.asarray(coords, dtype=float) - pose.translation - center
    return apply_transform(back, pose.rotation.conjugate().to_matrix(), center)

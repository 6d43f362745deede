"""Quaternion algebra for ligand rotations."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from glowdock.constants import LINEAR_THRESHOLD


@dataclass(frozen=True)
class Quaternion:
    """Quaternion ``w + xi + yj + zk``; rotations use the unit form."""

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: "Quaternion") -> "Quaternion":
        return Quaternion(self.w + other.w, self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Quaternion") -> "Quaternion":
        return Quaternion(self.w - other.w, self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Quaternion":
        return Quaternion(-self.w, -self.x, -self.y, -self.z)

    def __mul__(self, other: "Quaternion | float") -> "Quaternion":
        if isinstance(other, Quaternion):
            return Quaternion(
                self.w * other.w - self.x * other.x - self.y * other.y - self.z * other.z,
                self.w * other.x + self.x * other.w + self.y * other.z - self.z * other.y,
                self.w * other.y - self.x * other.z + self.y * other.w + self.z * other.x,
                self.w * other.z + self.x * other.y - self.y * other.x + self.z * other.w,
            )
        scalar = float(other)
        return Quaternion(scalar * self.w, scalar * self.x, scalar * self.y, scalar * self.z)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Quaternion":
        return Quaternion(self.w / scalar, self.x / scalar, self.y / scalar, self.z / scalar)

    def almost_equal(self, other: "Quaternion", tol: float = 1e-12) -> bool:
        return bool(np.allclose(self.as_array(), other.as_array(), rtol=0.0, atol=tol))

    def as_array(self) -> np.ndarray:
        return np.array([self.w, self.x, self.y, self.z], dtype=float)

    @classmethod
    def from_array(cls, values) -> "Quaternion":
        w, x, y, z = (float(v) for v in values)
        return cls(w, x, y, z)

    def conjugate(self) -> "Quaternion":
        return Quaternion(self.w, -self.x, -self.y, -self.z)

    def dot(self, other: "Quaternion") -> float:
        return self.w * other.w + self.x * other.x + self.y * other.y + self.z * other.z

    def norm2(self) -> float:
        return self.dot(self)

    def norm(self) -> float:
        return math.sqrt(self.norm2())

    def normalized(self) -> "Quaternion":
        norm = self.norm()
        if norm == 0.0:
            raise ValueError("Cannot normalize a zero quaternion.")
        return self / norm

    def to_matrix(self) -> np.ndarray:
        """Rotation matrix of the normalized quaternion."""

        w, x, y, z = self.normalized().as_array()
        return np.array(
            [
                [1 - 2 * (y**2 + z**2), 2 * (x * y - z * w), 2 * (x * z + y * w)],
                [2 * (x * y + z * w), 1 - 2 * (x**2 + z**2), 2 * (y * z - x * w)],
                [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x**2 + y**2)],
            ],
            dtype=float,
        )

    def rotate(self, coords: np.ndarray) -> np.ndarray:
        """Rotate a single vector or an ``(n, 3)`` array of vectors."""

        return np.asarray(coords, dtype=float) @ self.to_matrix().T

    def slerp(self, other: "Quaternion", t: float) -> "Quaternion":
        """Spherical interpolation along the shortest arc, always unit length."""

        q1 = self.normalized()
        q2 = other.normalized()
        q_dot = q1.dot(q2)

        # Shortest arc
        if q_dot < 0.0:
            q1 = -q1
            q_dot = -q_dot

        if q_dot > LINEAR_THRESHOLD:
            return (q1 + (q2 - q1) * t).normalized()

        q_dot = min(1.0, max(-1.0, q_dot))
        omega = math.acos(q_dot)
        so = math.sin(omega)
        result = q1 * (math.sin((1.0 - t) * omega) / so) + q2 * (math.sin(t * omega) / so)
        return result.normalized()


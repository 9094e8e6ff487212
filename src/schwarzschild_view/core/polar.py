"""
Polar coordinate helpers and rotation matrices.

Polar vectors are ``(r, phi, theta)`` where theta is the elevation above the
equatorial plane, so ``theta = 0`` is the equator and not the pole.
"""

import math

import numpy as np


def carthesic_to_polar(vec: np.ndarray) -> np.ndarray:
    """
    Convert a carthesic vector into ``(r, phi, theta)``.

    The angles stay zero at the origin.
    """
    x, y, z = (float(c) for c in vec)
    polar = np.zeros(3)
    polar[0] = math.sqrt(x * x + y * y + z * z)
    if polar[0] != 0.0:
        polar[1] = math.atan2(y, x)
        polar[2] = math.asin(min(1.0, max(-1.0, z / polar[0])))
    return polar


def polar_to_carthesic(polar: np.ndarray) -> np.ndarray:
    """Convert ``(r, phi, theta)`` into ``(x, y, z)``."""
    r, phi, theta = (float(c) for c in polar)
    return np.array(
        [
            r * math.cos(phi) * math.cos(theta),
            r * math.sin(phi) * math.cos(theta),
            r * math.sin(theta),
        ],
    )


def polar2_to_carthesic(phi: float, theta: float) -> np.ndarray:
    """Unit vector pointing towards ``(phi, theta)``."""
    return polar_to_carthesic(np.array([1.0, phi, theta]))


def trans_polar_vec(polar: np.ndarray, trans: np.ndarray) -> np.ndarray:
    """Rotate a vector given in polar coordinates by ``trans``."""
    return carthesic_to_polar(trans @ polar_to_carthesic(polar))


def look_to_vec_mat(look_to: np.ndarray) -> np.ndarray:
    """
    Build a rotation whose z axis points towards ``look_to``.

    The x axis is the z axis tilted down by 90 degrees and y = z × x, which
    avoids a fixed "up" vector.

    Args:
        look_to: Direction to look at, does not need to be normalized.

    Returns:
        3x3 matrix with the new axes as columns.

    """
    z = np.asarray(look_to, dtype=float)
    z = z / np.linalg.norm(z)
    x_polar = carthesic_to_polar(z)
    x_polar[2] -= math.pi / 2
    x = polar_to_carthesic(x_polar)
    y = np.cross(z, x)
    return np.column_stack((x, y, z))


def rotation_x(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array(
        [
            [1.0, 0.0, 0.0],
            [0.0, c, -s],
            [0.0, s, c],
        ],
    )


def rotation_z(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array(
        [
            [c, -s, 0.0],
            [s, c, 0.0],
            [0.0, 0.0, 1.0],
        ],
    )


def angle_between(a: np.ndarray, b: np.ndarray) -> float:
    """Unsigned angle between two vectors, 0 if either one vanishes."""
    denom = math.sqrt(float(np.dot(a, a)) * float(np.dot(b, b)))
    if denom == 0.0:
        return 0.0
    return math.acos(min(1.0, max(-1.0, float(np.dot(a, b)) / denom)))


def sign(value: float) -> float:
    """Sign that treats zero as positive."""
    return math.copysign(1.0, value)


__all__ = [
    "angle_between",
    "carthesic_to_polar",
    "look_to_vec_mat",
    "polar2_to_carthesic",
    "polar_to_carthesic",
    "rotation_x",
    "rotation_z",
    "sign",
    "trans_polar_vec",
]

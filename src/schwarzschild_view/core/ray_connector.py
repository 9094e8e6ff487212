"""
Light ray connecting a fixed point with a moving observer.

The ray is stored as samples of ``u = 1/r`` over the traveled angle and solved
as a boundary value problem

    u'' + u = 3/2 R u²

with u fixed at the observer (first node) and at the point (last node). Every
frame warm starts from the previous solution, so a single Newton iteration is
usually enough to keep up with the observer.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from schwarzschild_view.core.polar import angle_between, sign

logger = logging.getLogger(__name__)

NR_NODES = 48  # at least 3
SMALLEST_ANGLE = 0.05
MAX_RADIAL_JUMP = 0.5
RESET_ITERATIONS = 5


def solve_tridiagonal(diag: np.ndarray, off: float, rhs: np.ndarray) -> np.ndarray:
    """
    Thomas algorithm for a tridiagonal system with constant off-diagonals.

    Args:
        diag: Main diagonal.
        off: Value of both off-diagonals.
        rhs: Right hand side, same length as ``diag``.

    Returns:
        Solution of the system.

    """
    n = len(diag)
    c = np.empty(n)
    d = np.empty(n)
    c[0] = off / diag[0]
    d[0] = rhs[0] / diag[0]
    for i in range(1, n):
        denom = diag[i] - off * c[i - 1]
        c[i] = off / denom
        d[i] = (rhs[i] - off * d[i - 1]) / denom

    z = np.empty(n)
    z[-1] = d[-1]
    for i in range(n - 2, -1, -1):
        z[i] = d[i] - c[i] * z[i + 1]
    return z


class RayConnector:
    """Incremental solver for the light ray between ``pos`` and an observer."""

    def __init__(self, schwarz_r: float, pos: np.ndarray, less_than_180: bool):
        """
        Track the light ray arriving from ``pos``.

        Args:
            schwarz_r: Schwarzschild radius.
            pos: Carthesic position of the light source.
            less_than_180: True for the direct ray, False for the ray going the
                long way around the black hole.

        """
        self.schwarz_r = schwarz_r
        self.pos = np.asarray(pos, dtype=float)
        self.less_than_180 = less_than_180
        self.last_phi = 1.0
        self.last_angle = 0.0
        self.needs_reset = True
        self.u_ray = np.ones(NR_NODES)

    def _angular_separation(self, other_position: np.ndarray) -> float:
        phi = angle_between(self.pos, other_position)
        if not self.less_than_180:
            phi = 2 * math.pi - phi
        return phi

    def _output(self, incoming_angle: float) -> np.ndarray:
        self.last_angle = incoming_angle
        return np.array([*self.pos, incoming_angle], dtype=np.float32)

    def set_position(self, new_pos: np.ndarray) -> None:
        self.pos = np.asarray(new_pos, dtype=float)

    def reset_ray(self, other_position: np.ndarray) -> np.ndarray:
        """Rebuild the ray from a straight initial guess and solve it."""
        other_position = np.asarray(other_position, dtype=float)
        self.needs_reset = False
        u0 = 1.0 / np.linalg.norm(other_position)
        u1 = 1.0 / np.linalg.norm(self.pos)
        self.last_phi = self._angular_separation(other_position)

        weight = np.linspace(0.0, 1.0, NR_NODES)
        self.u_ray = u0 * (1.0 - weight) + u1 * weight

        # After a few Newton iterations the discretization error dominates
        return self.update_ray(other_position, RESET_ITERATIONS)

    def update_ray(self, other_position: np.ndarray, iterations: int) -> np.ndarray:
        """
        Update the ray for a new observer position.

        Args:
            other_position: Carthesic position of the observer.
            iterations: Number of Newton iterations.

        Returns:
            float32 array ``[x, y, z, incoming_angle]`` of the light source.

        """
        if self.needs_reset:
            return self.reset_ray(other_position)

        other_position = np.asarray(other_position, dtype=float)
        self.last_phi = self._angular_separation(other_position)
        r_other = float(np.linalg.norm(other_position))
        u0 = 1.0 / r_other

        # An almost straight ray, the discrete problem is badly conditioned.
        # u_ray is left as is and rebuilt once the angle grows again.
        if self.last_phi < SMALLEST_ANGLE:
            self.needs_reset = True
            if self.last_phi == 0.0:
                incoming_angle = 0.0 if r_other > np.linalg.norm(self.pos) else math.pi
            else:
                u1 = 1.0 / np.linalg.norm(self.pos)
                u_bar = (u1 - u0) / self.last_phi - self.last_phi / 2.0 * (
                    -u0 + 1.5 * self.schwarz_r * u0 * u0
                )
                incoming_angle = self.calc_ray_angle(u_bar, r_other)
            return self._output(incoming_angle)

        if abs(r_other - 1.0 / self.u_ray[0]) > MAX_RADIAL_JUMP:
            logger.debug("Observer jumped to r=%.3f, resetting ray", r_other)
            return self.reset_ray(other_position)

        # Shift the warm start by how much both endpoints moved
        u1 = 1.0 / np.linalg.norm(self.pos)
        weight = np.linspace(0.0, 1.0, NR_NODES)
        self.u_ray += (u0 - self.u_ray[0]) * (1.0 - weight) + (u1 - self.u_ray[-1]) * weight
        self.u_ray[0] = u0
        self.u_ray[-1] = u1

        h = self.last_phi / (NR_NODES - 1)
        scale = 1.0 / (h * h)
        for _ in range(iterations):
            self._newton_step(scale)

        return self._output(self.calc_ray_angle(self.observer_derivative(), r_other))

    def observer_derivative(self) -> float:
        """du/dφ of the discrete ray at the observer."""
        h = self.last_phi / (NR_NODES - 1)
        u_start = self.u_ray[0]
        # Second order one sided difference, u'' taken from the equation itself
        return (self.u_ray[1] - u_start) / h - h / 2.0 * (
            -u_start + 1.5 * self.schwarz_r * u_start * u_start
        )

    def _newton_step(self, scale: float) -> None:
        # Residual of (M_h + 3R/2 diag(u)) u with M_h the stencil of -u'' - u,
        # corrected with the Jacobian M_h + 3R diag(u)
        u = self.u_ray
        inner = u[1:-1]
        residual = (
            scale * (-u[:-2] + 2.0 * inner - u[2:])
            - inner
            + 1.5 * self.schwarz_r * inner * inner
        )
        diag = 2.0 * scale - 1.0 + 3.0 * self.schwarz_r * inner
        self.u_ray[1:-1] -= solve_tridiagonal(diag, -scale, residual)

    def calc_ray_angle(self, u_bar: float, r: float) -> float:
        """
        Angle between the incoming ray and the center, as seen by a frozen observer.

        Negative angles belong to rays going the long way around the black hole.
        """
        h = 1.0 - self.schwarz_r / r
        if r > self.schwarz_r:
            theta = sign(u_bar) * math.acos(math.sqrt(1.0 / (1.0 + (r * r * u_bar * u_bar) / h)))
        else:
            intermediate = -(r * r * u_bar * u_bar) / h - 1.0 if h != 0.0 else -1.0
            if intermediate > 0.0:
                theta = -math.pi / 2 + math.atan(math.sqrt(1.0 / intermediate))
            else:
                # TODO: derive the angle for this case, 0 is a placeholder that
                # only affects observers within the horizon
                theta = 0.0
        return (math.pi / 2 - theta) * (1.0 if self.less_than_180 else -1.0)

    def ray_profile(self) -> tuple[np.ndarray, np.ndarray]:
        """Angles and radii of the current ray nodes, starting at the observer."""
        phi = np.linspace(0.0, self.last_phi, NR_NODES)
        return phi, 1.0 / self.u_ray


__all__ = ["NR_NODES", "RayConnector", "solve_tridiagonal"]

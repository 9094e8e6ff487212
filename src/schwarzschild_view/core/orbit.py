"""Orbit of a massive test particle around a Schwarzschild black hole."""

from __future__ import annotations

import enum
import logging
import math

import numpy as np

from schwarzschild_view.core.polar import (
    angle_between,
    polar_to_carthesic,
    rotation_x,
    sign,
    trans_polar_vec,
)

logger = logging.getLogger(__name__)

Z_AXIS = np.array([0.0, 0.0, 1.0])

# Rotations below this fraction of schwarz_r are treated as a central fall
CENTRAL_FALL_THRESHOLD = 1e-5
MAX_STEP_FRAGMENTS = 1000
STABILITY_TOLERANCE = 1e-12


class OrbitStability(enum.Enum):
    """Outcome of an orbit, as shown by the three-color GUI indicator."""

    HittingSingularity = "red"
    StableOrbit = "green"
    EscapeTrajectory = "orange"


class Orbit:
    """
    Geodesic of a massive particle, confined to a plane through the black hole.

    The general case integrates ``u = 1/r`` over the orbital angle phi:

        u'' = -u + 3/2 R u² + R / (2 L²)

    A vanishing rotation is integrated as a radial fall in r instead.
    """

    def __init__(
        self,
        schwarz_r: float,
        position: np.ndarray,
        desired_direction: np.ndarray,
        rotation: float,
    ):
        """
        Set up the orbit plane and the conserved quantities.

        Args:
            schwarz_r: Schwarzschild radius.
            position: Carthesic start position.
            desired_direction: Start direction, must not be parallel to position.
            rotation: Rotational momentum L.

        Raises:
            ValueError: If the start lies within the horizon or the direction
                does not span a plane with the position.

        """
        position = np.asarray(position, dtype=float)
        r = float(np.linalg.norm(position))
        if r <= schwarz_r:
            msg = f"Orbit cannot start at r={r} within the horizon {schwarz_r}"
            raise ValueError(msg)
        plane_normal = np.cross(position, np.asarray(desired_direction, dtype=float))
        if np.linalg.norm(plane_normal) < 1e-12 * r:
            msg = "Direction and position do not span an orbit plane"
            raise ValueError(msg)

        if rotation < schwarz_r * CENTRAL_FALL_THRESHOLD:
            rotation = 0.0

        self.schwarz_r = schwarz_r
        self.rotation = rotation
        self.energy = math.sqrt((1.0 - schwarz_r / r) * (1.0 + rotation**2 / r**2))
        self.r = r
        self.u = 1.0 / r
        self.u_bar = 0.0
        self.last_r = r
        self.has_hit_singularity = False

        tilt_angle = angle_between(plane_normal, Z_AXIS)
        pos_phi = math.atan2(position[1], position[0])
        if tilt_angle < 1e-10 or math.pi - tilt_angle < 1e-10:
            self.tilt_angle = 0.0
            self.start_phi = 0.0
            self.orbit_angle = pos_phi
            self.plane_tilt_mat = np.identity(3)
        else:
            horizontal_cut = np.cross(Z_AXIS, plane_normal)
            orbit_angle = angle_between(horizontal_cut, position)
            if position[2] < 0.0:
                orbit_angle = 2 * math.pi - orbit_angle
            self.tilt_angle = tilt_angle
            self.orbit_angle = orbit_angle
            self.start_phi = math.atan2(horizontal_cut[1], horizontal_cut[0])
            self.plane_tilt_mat = rotation_x(tilt_angle)

    @classmethod
    def start(
        cls,
        schwarz_r: float,
        position: np.ndarray,
        desired_direction: np.ndarray,
        rotation: float,
    ) -> Orbit | None:
        """Create an orbit, or return None if it cannot start from here."""
        try:
            return cls(schwarz_r, position, desired_direction, rotation)
        except ValueError as exc:
            logger.debug("Orbit not started: %s", exc)
            return None

    def do_step(self, time_step: float) -> None:
        """Advance the orbit by ``time_step`` of coordinate time."""
        if self.has_hit_singularity:
            return

        if self.rotation == 0.0:
            # Verlet in r, which does not support varying time steps
            next_r = (
                2.0 * self.r
                - self.last_r
                - time_step * time_step * self.schwarz_r / (2.0 * self.r * self.r)
            )
            if next_r < 0.0:
                self.has_hit_singularity = True
            else:
                self.last_r = self.r
                self.r = next_r
            return

        rot = self.rotation
        u = self.u
        u_bar = self.u_bar

        # phi and u depend on each other. Errors in delta_phi only change the
        # simulated speed, errors in u would make the orbit decay.
        delta_phi = time_step * rot * u * u / 2.0
        next_u = u + delta_phi * u_bar
        for _ in range(2):
            delta_phi = time_step * rot / 4.0 * (u * u + next_u * next_u)
            next_u = u + delta_phi * u_bar
        delta_phi = time_step * rot / 4.0 * (u * u + next_u * next_u)

        if next_u > 50.0:
            self.has_hit_singularity = True
            return

        step_fragments = min(1 + math.floor(delta_phi * 100.0), MAX_STEP_FRAGMENTS)
        for _ in range(step_fragments):
            self.do_angle_step(delta_phi / step_fragments)
            if self.has_hit_singularity:
                return

    def _u_second_derivative(self, u: float) -> float:
        return self.schwarz_r * (1.0 / (2.0 * self.rotation**2) + 1.5 * u * u) - u

    def do_angle_step(self, delta_phi: float) -> None:
        """One RK4 step of the orbit equation over ``delta_phi``."""
        u = self.u
        u_bar = self.u_bar
        half = delta_phi / 2.0

        k1_u = u_bar
        k1_v = self._u_second_derivative(u)
        k2_u = u_bar + half * k1_v
        k2_v = self._u_second_derivative(u + half * k1_u)
        k3_u = u_bar + half * k2_v
        k3_v = self._u_second_derivative(u + half * k2_u)
        k4_u = u_bar + delta_phi * k3_v
        k4_v = self._u_second_derivative(u + delta_phi * k3_u)

        self.u += delta_phi * (k1_u + 2.0 * k2_u + 2.0 * k3_u + k4_u) / 6.0
        self.u_bar += delta_phi * (k1_v + 2.0 * k2_v + 2.0 * k3_v + k4_v) / 6.0

        if not math.isfinite(self.u) or self.u > 100.0 or self.u < 0.0:
            self.has_hit_singularity = True
        else:
            self.r = 1.0 / self.u
            self.orbit_angle += delta_phi

    def h_r(self) -> float:
        return 1.0 - self.schwarz_r / self.r

    def _plane_polar_position(self) -> np.ndarray:
        return trans_polar_vec(
            np.array([self.r, self.orbit_angle, 0.0]),
            self.plane_tilt_mat,
        )

    def get_position(self) -> np.ndarray:
        """Current position in carthesic coordinates."""
        polar_pos = self._plane_polar_position()
        polar_pos[1] += self.start_phi
        return polar_to_carthesic(polar_pos)

    def get_velocity(self) -> np.ndarray:
        """Velocity of the particle as seen by a frozen observer, as (t, r, phi)."""
        if self.rotation == 0.0:
            falling = -sign(self.r - self.last_r)
        else:
            falling = sign(self.u_bar)
        radial_sq = self.energy**2 - self.h_r() * (1.0 + self.rotation**2 / self.r**2)
        return np.array(
            [
                self.energy / self.h_r(),
                -falling * math.sqrt(max(0.0, radial_sq)),
                self.rotation / (self.r * self.r),
            ],
        )

    def current_tilt_angle(self) -> float:
        """Angle between the orbit plane and span(position, position × Z)."""
        return self.tilt_angle * math.cos(self._plane_polar_position()[1])

    def is_singular(self) -> bool:
        return self.has_hit_singularity

    def is_central_fall(self) -> bool:
        return self.rotation == 0.0

    @staticmethod
    def is_stable(rotation: float, schwarz_r: float, r: float) -> OrbitStability:
        """
        Classify an orbit starting at rest in r without integrating it.

        Args:
            rotation: Rotational momentum L.
            schwarz_r: Schwarzschild radius.
            r: Distance of the starting position.

        Returns:
            Whether the orbit falls in, stays bound or escapes.

        """
        if schwarz_r <= 0.0:
            # Flat space: anything with rotation drifts off
            if rotation > 0.0:
                return OrbitStability.EscapeTrajectory
            return OrbitStability.StableOrbit
        if rotation**2 < 3.0 * schwarz_r**2 * (1.0 - STABILITY_TOLERANCE):
            return OrbitStability.HittingSingularity
        # sqrt(3) R squared is not exactly 3 R² in floating point
        radicand = max(0.0, 1.0 - 3.0 * schwarz_r**2 / rotation**2)
        r1 = rotation**2 / schwarz_r * (1.0 - math.sqrt(radicand))
        if r < r1:
            return OrbitStability.HittingSingularity
        energy = math.sqrt((1.0 - schwarz_r / r) * (1.0 + rotation**2 / r**2))
        if energy > 1.0:
            return OrbitStability.EscapeTrajectory
        # The innermost stable circular orbit sits exactly on the barrier
        if energy**2 - (1.0 - schwarz_r / r1) * (rotation**2 / r1**2 + 1.0) <= STABILITY_TOLERANCE:
            return OrbitStability.StableOrbit
        return OrbitStability.HittingSingularity


__all__ = ["Orbit", "OrbitStability"]

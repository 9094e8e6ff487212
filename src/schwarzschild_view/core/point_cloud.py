"""Point sets whose light rays are tracked every frame."""

from __future__ import annotations

import logging
import math

import numpy as np

from schwarzschild_view.core.orbit import Orbit
from schwarzschild_view.core.polar import polar_to_carthesic
from schwarzschild_view.core.ray_connector import RayConnector

logger = logging.getLogger(__name__)


SPIRAL_POINTS = 10000
ACCRETION_DISK_POINTS = 5000
HEART_POINTS = 400


def _orbit_direction(pos: np.ndarray) -> np.ndarray:
    return np.array([-pos[1], pos[0], 0.0])


class PointCloud:
    """
    Light sources with one ray connector each, optionally moving on orbits.

    With ``farside`` every point is also seen along the ray that goes the long
    way around the black hole.
    """

    def __init__(  # noqa: PLR0913
        self,
        model_vertices: np.ndarray,
        schwarz_r: float,
        observer_pos: np.ndarray,
        farside: bool = False,
        orbits: bool = False,
        rng: np.random.Generator | None = None,
    ):
        model_vertices = np.asarray(model_vertices, dtype=float).reshape(-1, 3)
        self.schwarz_r = schwarz_r
        self.has_farside = farside
        self.has_orbits = orbits
        self.rng = rng if rng is not None else np.random.default_rng()

        self.points = [RayConnector(schwarz_r, pos, True) for pos in model_vertices]
        self.points_farside = (
            [RayConnector(schwarz_r, pos, False) for pos in model_vertices] if farside else []
        )
        self.vertices = np.array(
            [point.reset_ray(observer_pos) for point in self.points],
            dtype=np.float32,
        ).reshape(-1, 4)
        self.vertices_farside = np.array(
            [point.reset_ray(observer_pos) for point in self.points_farside],
            dtype=np.float32,
        ).reshape(-1, 4)

        self.orbits: list[Orbit] = []
        if orbits:
            self.orbits = [self._new_orbit(pos) for pos in model_vertices]

    def __len__(self) -> int:
        return len(self.points)

    def _new_orbit(self, pos: np.ndarray) -> Orbit:
        rotation = self.schwarz_r * (1.8 + 0.2 * self.rng.random())
        return Orbit(self.schwarz_r, pos, _orbit_direction(pos), rotation)

    def _random_position(self, r_min: float, r_span: float) -> np.ndarray:
        r = r_min + r_span * self.rng.random()
        phi = self.rng.random() * 2 * math.pi
        theta = 0.2 * (self.rng.random() - 0.5)
        return polar_to_carthesic(np.array([r, phi, theta]))

    @classmethod
    def spiral(cls, schwarz_r: float, observer_pos: np.ndarray, farside: bool = False) -> PointCloud:
        nr_points = SPIRAL_POINTS
        t = np.arange(nr_points) / nr_points * (2 * math.pi + 0.05)
        r = 16.0 + 2.0 * t
        points = np.column_stack(
            (-r * np.cos(10.0 * t), -r * np.sin(10.0 * t), np.full(nr_points, 0.001)),
        )
        return cls(points, schwarz_r, observer_pos, farside=farside)

    @classmethod
    def accretion_disk(
        cls,
        schwarz_r: float,
        observer_pos: np.ndarray,
        farside: bool = False,
        rng: np.random.Generator | None = None,
    ) -> PointCloud:
        rng = rng if rng is not None else np.random.default_rng()
        nr_points = ACCRETION_DISK_POINTS
        r = 2.0 * schwarz_r + 2.0 * schwarz_r * rng.random(nr_points)
        phi = rng.random(nr_points) * 2 * math.pi
        theta = 0.2 * (rng.random(nr_points) - 0.5)
        points = np.column_stack(
            (r * np.cos(phi) * np.cos(theta), r * np.sin(phi) * np.cos(theta), r * np.sin(theta)),
        )
        return cls(points, schwarz_r, observer_pos, farside=farside, orbits=True, rng=rng)

    @classmethod
    def heart(cls, schwarz_r: float, observer_pos: np.ndarray, farside: bool = False) -> PointCloud:
        nr_points = HEART_POINTS
        t = np.arange(nr_points) / nr_points * 2 * math.pi
        points = np.column_stack(
            (
                np.full(nr_points, 11.0),
                16.0 * np.sin(t) ** 3,
                13.0 * np.cos(t) - 5.0 * np.cos(2 * t) - 2.0 * np.cos(3 * t) - np.cos(4 * t),
            ),
        )
        return cls(points, schwarz_r, observer_pos, farside=farside)

    def update(self, observer_pos: np.ndarray, dt: float) -> None:
        """Move the points along their orbits and follow the observer with one Newton step."""
        for i, point in enumerate(self.points):
            if self.has_orbits:
                self._advance_orbit(i, observer_pos, dt)
            self.vertices[i] = point.update_ray(observer_pos, 1)
            if self.has_farside:
                self.vertices_farside[i] = self.points_farside[i].update_ray(observer_pos, 1)

    def _advance_orbit(self, i: int, observer_pos: np.ndarray, dt: float) -> None:
        orbit = self.orbits[i]
        orbit.do_step(dt)
        orbit_pos = orbit.get_position()

        if orbit.is_singular() or np.dot(orbit_pos, orbit_pos) <= self.schwarz_r**2:
            pos = self._random_position(1.6 * self.schwarz_r, self.schwarz_r)
            logger.debug("Point %d fell in, respawning at r=%.3f", i, np.linalg.norm(pos))
            orbit = self.orbits[i] = self._new_orbit(pos)
            orbit_pos = orbit.get_position()
            self.points[i].set_position(orbit_pos)
            self.points[i].needs_reset = True
            if self.has_farside:
                self.points_farside[i].set_position(orbit_pos)
                self.points_farside[i].needs_reset = True
            return

        self.points[i].set_position(orbit_pos)
        if self.has_farside:
            self.points_farside[i].set_position(orbit_pos)


__all__ = ["ACCRETION_DISK_POINTS", "HEART_POINTS", "SPIRAL_POINTS", "PointCloud"]

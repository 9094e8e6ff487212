"""
In-memory simulation session shared by all requests.

There is exactly one logical frame at a time, requests that touch the
simulation hold ``Session.lock`` while doing so.
"""

from __future__ import annotations

import logging
import threading

import numpy as np

from schwarzschild_view.core.controller import ObserverController
from schwarzschild_view.core.observer import Observer, ObserverState
from schwarzschild_view.core.orbit import Orbit
from schwarzschild_view.core.point_cloud import PointCloud
from schwarzschild_view.core.sphere_ray_tracer import NO_VALUE, SphereRayTracer
from schwarzschild_view.web.constants import (
    ALLOWED_POINT_CLOUDS,
    DEFAULT_STEP,
    FARSIDE,
    FOV,
    MAX_ITER,
    NR_NODES_HALF,
    ORBIT_ROTATION,
    POINT_CLOUD,
    SCHWARZ_R,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    SPHERE_RADII,
)

logger = logging.getLogger(__name__)


def build_point_cloud(
    kind: str,
    schwarz_r: float,
    observer_pos: np.ndarray,
    farside: bool,
) -> PointCloud | None:
    if kind not in ALLOWED_POINT_CLOUDS:
        msg = f"Unknown point cloud {kind!r}, expected one of {ALLOWED_POINT_CLOUDS}"
        raise ValueError(msg)
    if kind == "spiral":
        return PointCloud.spiral(schwarz_r, observer_pos, farside)
    if kind == "accretion_disk":
        return PointCloud.accretion_disk(schwarz_r, observer_pos, farside)
    if kind == "heart":
        return PointCloud.heart(schwarz_r, observer_pos, farside)
    return None


class Session:
    def __init__(
        self,
        schwarz_r: float = SCHWARZ_R,
        sphere_radii: tuple[float, ...] = SPHERE_RADII,
        point_cloud: str = POINT_CLOUD,
        farside: bool = FARSIDE,
    ):
        self.lock = threading.Lock()
        self.schwarz_r = schwarz_r
        self.frame = 0
        self.observer = Observer(schwarz_r, FOV, SCREEN_WIDTH, SCREEN_HEIGHT)
        self.controller = ObserverController()
        self.ray_tracers = {
            radius: SphereRayTracer(radius, schwarz_r, MAX_ITER, DEFAULT_STEP, NR_NODES_HALF)
            for radius in sphere_radii
        }
        self.point_cloud = build_point_cloud(point_cloud, schwarz_r, self.observer.position, farside)
        logger.info(
            "Session with schwarz_r=%s, spheres=%s, %d tracked points",
            schwarz_r,
            list(sphere_radii),
            len(self.point_cloud) if self.point_cloud is not None else 0,
        )

    def set_mode(self, mode: str, rotation: float | None = None) -> ObserverState:
        """Switch the observer's state of motion, returns the state actually active."""
        if mode == "unmoving":
            self.observer.start_unmoving()
        elif mode == "frozen_fall":
            self.observer.start_frozen_fall()
        elif mode == "fall":
            self.observer.start_orbit(0.0)
        elif mode == "orbit":
            self.observer.start_orbit(ORBIT_ROTATION if rotation is None else rotation)
        else:
            msg = f"Unknown mode {mode!r}"
            raise ValueError(msg)
        return self.observer.state

    def advance_frame(
        self,
        dt: float,
        keys: list[str] | None = None,
        mouse_dx: float = 0.0,
        mouse_dy: float = 0.0,
    ) -> None:
        """Apply the inputs held during this frame and move everything forward by ``dt``."""
        for key in keys or []:
            self.controller.process_keyboard(key, True)
        self.controller.process_mouse(mouse_dx, mouse_dy)
        self.controller.update_observer(self.observer, dt)
        self.controller.release_all()

        if self.point_cloud is not None:
            self.point_cloud.update(self.observer.position, dt)
        self.frame += 1

    def ray_fan(self, sphere_r: float) -> np.ndarray:
        """Copy of the ray fan of a configured sphere for the current observer radius."""
        tracer = self.ray_tracers[sphere_r]
        return tracer.solve_ray_fan(self.observer.radial_position).copy()

    def stability(self, rotation: float, r: float | None = None) -> str:
        if r is None:
            r = self.observer.radial_position
        return Orbit.is_stable(rotation, self.schwarz_r, r).name

    def observer_summary(self) -> dict:
        observer = self.observer
        singular = observer.is_singular()
        return {
            "state": observer.state.value,
            "frame": self.frame,
            "schwarz_r": observer.schwarz_r,
            "position": observer.position.tolist(),
            "camera": observer.camera.tolist(),
            "radial_position": observer.radial_position,
            "velocity": None if singular else observer.velocity().tolist(),
            "psi": observer.psi,
            "singular": singular,
        }


def encode_ray_fan(values: np.ndarray) -> np.ndarray:
    """Map a ray fan onto 8 bit gray values, misses become 0."""
    gray = np.clip(np.rint((values + np.pi) / (2 * np.pi) * 254.0) + 1.0, 1.0, 255.0)
    gray[values == NO_VALUE] = 0.0
    return gray.astype(np.uint8)


_SESSION: Session | None = None
_SESSION_LOCK = threading.Lock()


def get_session() -> Session:
    global _SESSION  # noqa: PLW0603
    with _SESSION_LOCK:
        if _SESSION is None:
            _SESSION = Session()
        return _SESSION


def reset_session(session: Session | None = None) -> Session:
    """Replace the shared session, mostly useful for tests."""
    global _SESSION  # noqa: PLW0603
    with _SESSION_LOCK:
        _SESSION = session if session is not None else Session()
        return _SESSION


__all__ = ["Session", "build_point_cloud", "encode_ray_fan", "get_session", "reset_session"]

"""
The observer: a camera moving through Schwarzschild spacetime.

Besides position and look direction the observer is responsible for the
screen scaling, three rotations and the special relativistic aberration of
its own movement. These are packed into a ``TransformationPipeline`` which is
handed to the renderer every frame.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass

import numpy as np

from schwarzschild_view.core.orbit import Orbit
from schwarzschild_view.core.polar import (
    look_to_vec_mat,
    polar2_to_carthesic,
    rotation_x,
    rotation_z,
)

logger = logging.getLogger(__name__)

SAFE_FRAC_PI_2 = math.pi / 2 - 0.0001
SINGULAR_DISTANCE = 1e-10
MOVEMENT_STEP = 0.051
START_POSITION = (25.0, 0.0, 0.0)
START_CAMERA = (math.pi, 0.0)
MIRROR_Y = np.diag([1.0, -1.0, 1.0])


class ObserverState(enum.Enum):
    UNMOVING = "unmoving"  # No movement relative to the black hole
    FROZEN_FALL = "frozen_fall"  # Aberration of a straight fall, position chosen freely
    ORBITING = "orbiting"  # Simulated movement on an orbit


def _pad_mat4(mat: np.ndarray) -> np.ndarray:
    padded = np.identity(4, dtype=np.float32)
    padded[:3, :3] = mat
    return padded


def _clamped_acos(value: float) -> float:
    return math.acos(min(1.0, max(-1.0, value)))


@dataclass(frozen=True)
class TransformationPipeline:
    """
    Uniform block consumed by the renderer.

    Matrices are 4x4 float32 with the rotation in the upper left corner, the
    last row holds ``[aberration_factor, x, y, z]``.
    """

    display_to_movement: np.ndarray
    movement_to_central: np.ndarray
    central_to_uv: np.ndarray
    psi_factor_and_position: np.ndarray

    NBYTES = 3 * 16 * 4 + 4 * 4

    def to_bytes(self) -> bytes:
        """Little endian float32 layout, matrices in column major order."""
        parts = [
            np.asarray(mat, dtype="<f4").T.tobytes()
            for mat in (self.display_to_movement, self.movement_to_central, self.central_to_uv)
        ]
        parts.append(np.asarray(self.psi_factor_and_position, dtype="<f4").tobytes())
        return b"".join(parts)

    def as_dict(self) -> dict[str, list]:
        return {
            "display_to_movement": self.display_to_movement.tolist(),
            "movement_to_central": self.movement_to_central.tolist(),
            "central_to_uv": self.central_to_uv.tolist(),
            "psi_factor_and_position": self.psi_factor_and_position.tolist(),
        }


class Observer:
    """Camera with a relativistic state of motion."""

    def __init__(self, schwarz_r: float, fov: float, width: float, height: float):
        """
        Observer starting in a frozen fall.

        Args:
            schwarz_r: Schwarzschild radius, fixed for the session.
            fov: Vertical field of view in radians.
            width: Screen width in pixels.
            height: Screen height in pixels.

        """
        self.schwarz_r = schwarz_r
        self.position = np.array(START_POSITION)
        self.camera = np.array(START_CAMERA)
        self.orbit: Orbit | None = None
        self.state = ObserverState.FROZEN_FALL

        self.time_step = 1.0 / 60.0
        self.energy = 1.0
        self.mouse_sensitivity = fov / height

        fov_half_tan = math.tan(fov / 2.0)
        self.fov_scaling = np.diag([fov_half_tan, fov_half_tan * width / height, 1.0])
        # sub-matrices of the first transformation. The camera is left out so
        # looking around stays possible while singular.
        self.standard_to_movement = np.identity(3)
        self.movement_to_central = np.identity(3)
        self.central_to_uv = np.identity(3)
        self.psi = 1.0

    @property
    def radial_position(self) -> float:
        return float(np.linalg.norm(self.position))

    def h_r(self) -> float:
        return 1.0 - self.schwarz_r / self.radial_position

    def update_position(self, desired_direction: np.ndarray) -> None:
        """
        Move by user input or along the simulated trajectory.

        Args:
            desired_direction: Movement in terms of (forward, left, up), ignored
                while orbiting.

        """
        if self.state is ObserverState.ORBITING:
            self.orbit.do_step(self.time_step)
            self.position = self.orbit.get_position()
        else:
            step = rotation_z(-self.camera[0]) @ np.asarray(desired_direction, dtype=float)
            self.position = self.position + MOVEMENT_STEP * step

    def velocity(self) -> np.ndarray:
        """Momentary velocity in (t, r, phi)."""
        if self.state is ObserverState.UNMOVING:
            return self.unmoving_velocity()
        if self.state is ObserverState.FROZEN_FALL:
            return self.frozen_fall_velocity()
        return self.orbit.get_velocity()

    def unmoving_velocity(self) -> np.ndarray:
        if self.radial_position > self.schwarz_r:
            return np.array([1.0 / math.sqrt(self.h_r()), 0.0, 0.0])
        # Nothing stands still within the event horizon
        return np.array([0.0, -math.sqrt(-self.h_r()), 0.0])

    def frozen_fall_velocity(self) -> np.ndarray:
        h = self.h_r()
        if self.energy**2 < h:
            return self.unmoving_velocity()
        return np.array([self.energy / h, math.sqrt(self.energy**2 - h), 0.0])

    def start_orbit(self, rotation: float) -> None:
        """Enter an orbit in the plane spanned by the position and the z axis normal."""
        direction = np.array([-self.position[1], self.position[0], 0.0])
        orbit = Orbit.start(self.schwarz_r, self.position, direction, rotation)
        if orbit is None:
            logger.info("Cannot start an orbit from r=%.3f", self.radial_position)
            return
        self.orbit = orbit
        self.state = ObserverState.ORBITING
        logger.info("Orbiting with rotation %.3f from r=%.3f", orbit.rotation, self.radial_position)

    def start_frozen_fall(self) -> None:
        self.orbit = None
        self.state = ObserverState.FROZEN_FALL
        logger.info("Frozen fall at r=%.3f", self.radial_position)

    def start_unmoving(self) -> None:
        """Stand still, which makes no physical sense within the event horizon."""
        self.orbit = None
        self.state = ObserverState.UNMOVING
        logger.info("Unmoving at r=%.3f", self.radial_position)

    def reset_to_start(self) -> None:
        self.position = np.array(START_POSITION)
        self.camera = np.array(START_CAMERA)
        self.start_frozen_fall()

    def is_singular(self) -> bool:
        r = self.radial_position
        if abs(r - self.schwarz_r) < SINGULAR_DISTANCE:
            return True
        if self.state is ObserverState.ORBITING:
            return self.orbit.is_singular()
        return r < SINGULAR_DISTANCE

    def calc_transformation_pipeline(self) -> TransformationPipeline:
        """Assemble the matrices and the aberration factor for the renderer."""
        r = self.radial_position

        # position related values can only be updated while not singular
        if not self.is_singular():
            vel = self.velocity()
            h = self.h_r()
            if r > self.schwarz_r:
                self.psi = vel[0] * vel[0] * h
            else:
                self.psi = -vel[1] * vel[1] / h
            if self.psi - 1.0 < 1e-10:
                self.psi = 1.0

            standard_to_central = look_to_vec_mat(-self.position).T
            if (
                self.state is ObserverState.ORBITING
                and not self.orbit.is_central_fall()
                and self.psi > 1.0
            ):
                self._orbit_aberration(vel, r, h, standard_to_central)
            else:
                self.standard_to_movement = standard_to_central
                self.movement_to_central = np.identity(3)
            # geodesics mirror the coordinates
            self.central_to_uv = look_to_vec_mat(self.position) @ MIRROR_Y

        camera_to_standard = look_to_vec_mat(polar2_to_carthesic(*self.camera))
        display_to_movement = self.standard_to_movement @ camera_to_standard @ self.fov_scaling

        return TransformationPipeline(
            display_to_movement=_pad_mat4(display_to_movement),
            movement_to_central=_pad_mat4(self.movement_to_central),
            central_to_uv=_pad_mat4(self.central_to_uv),
            psi_factor_and_position=np.array(
                [math.sqrt((self.psi - 1.0) / self.psi), *self.position],
                dtype=np.float32,
            ),
        )

    def _orbit_aberration(
        self,
        vel: np.ndarray,
        r: float,
        h: float,
        standard_to_central: np.ndarray,
    ) -> None:
        psi = self.psi
        tilt_angle = self.orbit.current_tilt_angle()
        plane_angle1 = _clamped_acos(
            -vel[0] * vel[1] * math.copysign(1.0, r - self.schwarz_r)
            / math.sqrt((1.0 + r * r * vel[2] * vel[2]) * psi * (psi - 1.0)),
        )
        if r > self.schwarz_r:
            plane_angle2 = _clamped_acos(-vel[1] / math.sqrt(h * (psi - 1.0)))
        else:
            plane_angle2 = _clamped_acos(-vel[0] * math.sqrt(-h / (psi - 1.0)))

        orbit_plane_tilt = rotation_z(-tilt_angle)
        tilted_center_to_movement1 = rotation_x(-plane_angle1)
        movement2_to_tilted_center = rotation_x(plane_angle2)

        self.standard_to_movement = tilted_center_to_movement1 @ orbit_plane_tilt @ standard_to_central
        self.movement_to_central = orbit_plane_tilt.T @ movement2_to_tilted_center

    def update_screen_format(self, width: float, height: float) -> None:
        fov_half_tan = self.fov_scaling[0, 0]
        self.fov_scaling = np.diag([fov_half_tan, fov_half_tan * width / height, 1.0])

    def move_camera(self, horizontal_pixels: float, vertical_pixels: float) -> None:
        self.camera[0] += horizontal_pixels * self.mouse_sensitivity
        self.camera[1] += vertical_pixels * self.mouse_sensitivity
        self.camera[1] = min(SAFE_FRAC_PI_2, max(-SAFE_FRAC_PI_2, self.camera[1]))


__all__ = ["Observer", "ObserverState", "TransformationPipeline"]

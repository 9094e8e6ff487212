"""Ray fan between an observer and a sphere around the black hole."""

import math

import numpy as np

# Roughly five rotations, far outside of any physical angle
NO_VALUE = 10.0


def _rk4_step(u: float, u_bar: float, step: float, r3_2: float) -> tuple[float, float]:
    """One RK4 step of u'' = -u + 3R/2 u², with ``r3_2 = 3R/2``."""
    half = step / 2.0
    a_u = u + half * u_bar
    a_u_bar = u_bar + half * (-u + r3_2 * u * u)
    b_u = u + half * a_u_bar
    b_u_bar = u_bar + half * (-a_u + r3_2 * a_u * a_u)
    c_u = u + step * b_u_bar
    c_u_bar = u_bar + step * (-b_u + r3_2 * b_u * b_u)

    next_u = u + step * (u_bar + 2.0 * a_u_bar + 2.0 * b_u_bar + c_u_bar) / 6.0
    next_u_bar = u_bar + step * (
        (-u + r3_2 * u * u)
        + 2.0 * (-a_u + r3_2 * a_u * a_u)
        + 2.0 * (-b_u + r3_2 * b_u * b_u)
        + (-c_u + r3_2 * c_u * c_u)
    ) / 6.0
    return next_u, next_u_bar


class SphereRayTracer:
    """
    Shooting method for the rays between an observer and a sphere.

    The resulting table maps the emission angle at the observer, sampled
    uniformly from straight down to straight up, to the polar angle at which
    the ray meets the sphere.
    """

    NO_VALUE = NO_VALUE
    NEWTON_REFINEMENTS = 3

    def __init__(
        self,
        sphere_r: float,
        schwarz_r: float,
        max_iter: int,
        default_step: float,
        nr_nodes_half: int,
    ):
        self.sphere_r = sphere_r
        self.schwarz_r = schwarz_r
        self.max_iter = max_iter
        self.default_step = default_step
        self.nr_nodes = 2 * nr_nodes_half
        self.interpolation_grid = np.full(self.nr_nodes, NO_VALUE, dtype=np.float32)

    def solve_ray_fan(self, r: float) -> np.ndarray:
        """
        Solve all rays for an observer at radius ``r``.

        Returns:
            float32 table of ``pi/2 - traveled angle`` per emission angle, or
            ``NO_VALUE`` where the ray misses the sphere. The buffer is reused
            between calls.

        """
        for i in range(self.nr_nodes):
            theta = math.pi / 2 - math.pi * i / (self.nr_nodes - 1)
            rotation = r * math.cos(theta)
            if r < self.schwarz_r:
                r_falling = False
                energy = math.sin(-theta) * math.sqrt(-1.0 + self.schwarz_r / r)
            else:
                r_falling = theta > 0.0
                energy = math.sqrt(1.0 - self.schwarz_r / r)

            angle = self.solve_geodesic(r, energy, rotation, r_falling)
            # transform the traveled angle into theta of polar coordinates
            self.interpolation_grid[i] = NO_VALUE if angle == NO_VALUE else math.pi / 2 - angle

        return self.interpolation_grid

    def _radial_geodesic(self, r: float, energy: float, r_falling: bool) -> float:  # noqa: PLR0911
        outside = r > self.schwarz_r
        sphere_outside = self.sphere_r > self.schwarz_r

        if r < self.sphere_r:
            if outside:
                if not r_falling:
                    return 0.0
                return math.pi if self.schwarz_r == 0.0 else NO_VALUE
            if sphere_outside and energy <= 0.0:
                return NO_VALUE
            return 0.0
        if sphere_outside and r_falling:
            return 0.0
        return NO_VALUE

    def solve_geodesic(  # noqa: C901, PLR0911
        self,
        r: float,
        energy: float,
        rotation: float,
        r_falling: bool,
    ) -> float:
        """
        Angle traveled by a ray until it meets the sphere.

        Args:
            r: Radius of the observer.
            energy: Conserved energy of the ray.
            rotation: Conserved rotational momentum of the ray.
            r_falling: Whether the ray starts moving towards the center.

        Returns:
            The traveled angle, or ``NO_VALUE`` if the sphere is never reached.

        """
        # looking straight in or out
        if rotation < 1e-10:
            return self._radial_geodesic(r, energy, r_falling)

        outside = r > self.schwarz_r
        sphere_outside = self.sphere_r > self.schwarz_r
        inside_sphere = r < self.sphere_r
        inv_b_sq = (energy / rotation) ** 2

        r3_2 = 3.0 * self.schwarz_r / 2.0
        # Not enough energy to cross the potential barrier at 3R/2 ...
        barrier_3r_2 = self.schwarz_r > 0.0 and inv_b_sq < 4.0 / (27.0 * self.schwarz_r**2)
        # ... which matters if the observer and the sphere are on different sides
        different_sides_3r_2 = ((r < r3_2) != (self.sphere_r < r3_2)) and abs(r - r3_2) > 1e-10

        if (
            (inside_sphere and not sphere_outside)
            or (not outside and sphere_outside and energy < 0.0)
            or (barrier_3r_2 and different_sides_3r_2)
            or (r < r3_2 and inside_sphere and r_falling)
            or (r > r3_2 and not inside_sphere and not r_falling)
        ):
            return NO_VALUE

        u_k = 1.0 / r
        u_bar_k = (1.0 if r_falling else -1.0) * math.sqrt(
            max(0.0, inv_b_sq - (1.0 - self.schwarz_r / r) / (r * r)),
        )
        angle = 0.0
        iteration = 0

        bound = 0.9 * min(u_k, 1.0 / max(self.sphere_r, r3_2))
        step = self.default_step
        sphere_u = 1.0 / self.sphere_r
        schwarz_u = 1.0 / self.schwarz_r if self.schwarz_r > 0.0 else math.inf

        while not (u_k > schwarz_u and u_bar_k > 0.0) and iteration < self.max_iter and u_k > 0.0:
            next_u, next_u_bar = _rk4_step(u_k, u_bar_k, step, r3_2)

            # The ray passed the surface, refine the cut with Newton on the
            # function of a single RK4 step from u_k
            if (next_u > sphere_u) != (u_k > sphere_u):
                return angle + self._refine_crossing(u_k, u_bar_k, next_u, next_u_bar, r3_2)

            if next_u < bound:
                return NO_VALUE
            u_k = next_u
            u_bar_k = next_u_bar
            iteration += 1
            angle += step

        return NO_VALUE

    def _refine_crossing(
        self,
        u_k: float,
        u_bar_k: float,
        next_u: float,
        next_u_bar: float,
        r3_2: float,
    ) -> float:
        sphere_u = 1.0 / self.sphere_r
        # start on the side with the larger slope
        if abs(u_bar_k) > abs(next_u_bar):
            newton_step, newton_u, newton_u_bar = 0.0, u_k, u_bar_k
        else:
            newton_step, newton_u, newton_u_bar = self.default_step, next_u, next_u_bar

        for _ in range(self.NEWTON_REFINEMENTS):
            if newton_u_bar == 0.0:
                break
            newton_step -= (newton_u - sphere_u) / newton_u_bar
            newton_u, newton_u_bar = _rk4_step(u_k, u_bar_k, newton_step, r3_2)
        return newton_step


__all__ = ["NO_VALUE", "SphereRayTracer"]

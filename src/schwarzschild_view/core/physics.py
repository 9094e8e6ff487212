"""Metric helpers and a reference light-ray integrator."""

import numpy as np
from scipy.integrate import solve_ivp


class SchwarzschildBlackHole:
    """Non-rotating black hole in geometric units (G = c = 1)."""

    def __init__(self, schwarz_r: float):
        """
        Non-rotating Blackhole.

        Args:
            schwarz_r: Radius of the event horizon.

        """
        self.schwarz_r = schwarz_r

    @property
    def photon_sphere_radius(self) -> float:
        return 1.5 * self.schwarz_r

    @property
    def isco_radius(self) -> float:
        return 3.0 * self.schwarz_r

    def metric_factor(self, r: float) -> float:
        """h(r) = 1 - R/r, negative within the horizon."""
        return 1.0 - self.schwarz_r / r

    def light_ray_equations(self, _phi: float, state: np.ndarray) -> np.ndarray:
        """
        Orbit equation of a photon in terms of the inverse radius.

        Args:
            state: [u, du/dφ] with u = 1/r
            _phi: Angle traveled along the ray

        Returns:
            Derivatives of the state

        """
        u, u_bar = state
        return np.array([u_bar, -u + 1.5 * self.schwarz_r * u * u])

    def trace_light_ray(
        self,
        u0: float,
        u_bar0: float,
        phi_max: float,
        u_stop: float | None = None,
    ) -> object:
        """
        Integrate a light ray with an adaptive solver.

        Slower than the fixed step schemes used per frame, but accurate enough
        to serve as a reference for them.

        Args:
            u0: Inverse radius at the start of the ray
            u_bar0: du/dφ at the start of the ray
            phi_max: Largest angle to integrate to
            u_stop: Stop once u crosses this value (e.g. a sphere surface)

        Returns:
            Solution of the orbit equation, ``t`` holds the angle and ``y`` holds
            [u, du/dφ]

        """
        events = []

        def escape_event(_phi, s):
            return s[0]

        escape_event.terminal = True
        escape_event.direction = -1
        events.append(escape_event)

        if self.schwarz_r > 0.0:
            horizon_u = 1.0 / self.schwarz_r

            def horizon_event(_phi, s):
                return s[0] - horizon_u

            # only falling through the horizon, the ray may start inside
            horizon_event.terminal = True
            horizon_event.direction = 1
            if u0 < horizon_u:
                events.append(horizon_event)

        if u_stop is not None:

            def surface_event(_phi, s):
                return s[0] - u_stop

            surface_event.terminal = True
            events.append(surface_event)

        return solve_ivp(
            self.light_ray_equations,
            (0.0, float(phi_max)),
            np.array([u0, u_bar0], dtype=float),
            method="RK45",
            rtol=1e-10,
            atol=1e-12,
            events=events,
            dense_output=True,
        )


__all__ = ["SchwarzschildBlackHole"]

import math

import numpy as np
import pytest

from schwarzschild_view.core.physics import SchwarzschildBlackHole
from schwarzschild_view.core.sphere_ray_tracer import NO_VALUE, SphereRayTracer

STEP = math.pi / 100


def emission_angles(nr_nodes: int) -> np.ndarray:
    return math.pi / 2 - math.pi * np.arange(nr_nodes) / (nr_nodes - 1)


def test_flat_space_matches_straight_lines():
    r = 25.0
    tracer = SphereRayTracer(100.0, 0.0, 1000, STEP, 50)

    values = tracer.solve_ray_fan(r)

    theta = emission_angles(100)
    expected = np.arcsin(r * np.cos(theta) / 100.0) - theta
    np.testing.assert_allclose(values, expected, atol=1e-5)


def test_table_shape_and_buffer_reuse():
    tracer = SphereRayTracer(100.0, 10.0, 1000, STEP, 10)

    first = tracer.solve_ray_fan(25.0)
    assert first.shape == (20,)
    assert first.dtype == np.float32

    second = tracer.solve_ray_fan(40.0)
    assert second is first


def test_observer_within_photon_sphere_misses_inwards():
    tracer = SphereRayTracer(100.0, 10.0, 1000, STEP, 50)

    values = tracer.solve_ray_fan(12.0)

    theta = emission_angles(100)
    assert np.all(values[theta > 0.0] == NO_VALUE)
    # straight out reaches the sphere right above the observer
    assert values[-1] == pytest.approx(math.pi / 2, abs=1e-6)


def test_values_outside_sentinel_are_angles():
    tracer = SphereRayTracer(100.0, 10.0, 1000, STEP, 50)

    values = tracer.solve_ray_fan(25.0)

    hits = values[values != NO_VALUE]
    assert len(hits) > 0
    assert np.all(np.abs(hits) < 2 * math.pi)


def test_sphere_within_horizon_is_never_reached_from_outside():
    tracer = SphereRayTracer(5.0, 10.0, 1000, STEP, 10)
    assert np.all(tracer.solve_ray_fan(25.0) == NO_VALUE)


@pytest.mark.parametrize(("theta", "falling"), [(-0.3, False), (0.3, True), (-1.2, False)])
def test_geodesic_matches_adaptive_reference(theta, falling):
    r = 25.0
    schwarz_r = 10.0
    sphere_r = 100.0
    tracer = SphereRayTracer(sphere_r, schwarz_r, 1000, STEP, 10)
    energy = math.sqrt(1.0 - schwarz_r / r)
    rotation = r * math.cos(theta)

    angle = tracer.solve_geodesic(r, energy, rotation, falling)

    u_bar = (1.0 if falling else -1.0) * math.sqrt(
        (energy / rotation) ** 2 - (1.0 - schwarz_r / r) / (r * r),
    )
    reference = SchwarzschildBlackHole(schwarz_r).trace_light_ray(
        1.0 / r,
        u_bar,
        4 * math.pi,
        u_stop=1.0 / sphere_r,
    )
    assert reference.status == 1
    assert angle == pytest.approx(reference.t[-1], abs=1e-5)


def test_radial_geodesics():
    tracer = SphereRayTracer(100.0, 10.0, 1000, STEP, 10)
    # looking straight out
    assert tracer.solve_geodesic(25.0, 1.0, 0.0, False) == 0.0
    # looking straight into the black hole
    assert tracer.solve_geodesic(25.0, 1.0, 0.0, True) == NO_VALUE
    # outside the sphere looking in
    assert tracer.solve_geodesic(150.0, 1.0, 0.0, True) == 0.0
    # outside the sphere looking out
    assert tracer.solve_geodesic(150.0, 1.0, 0.0, False) == NO_VALUE


def test_flat_space_ray_through_center():
    tracer = SphereRayTracer(100.0, 0.0, 1000, STEP, 10)
    assert tracer.solve_geodesic(25.0, 1.0, 0.0, True) == math.pi


def test_iteration_limit():
    tracer = SphereRayTracer(100.0, 0.0, 3, STEP, 10)
    assert tracer.solve_geodesic(25.0, 1.0, 20.0, False) == NO_VALUE


def test_observer_within_horizon_only_reaches_sphere_looking_down():
    tracer = SphereRayTracer(100.0, 10.0, 1000, STEP, 50)

    values = tracer.solve_ray_fan(5.0)

    theta = emission_angles(100)
    # upwards rays have negative energy within the horizon
    assert np.all(values[theta > 0.0] == NO_VALUE)
    assert np.all(values[theta < -0.6] != NO_VALUE)
    assert values[-1] == pytest.approx(math.pi / 2)


def test_geodesic_from_within_horizon_matches_adaptive_reference():
    r = 5.0
    schwarz_r = 10.0
    sphere_r = 100.0
    theta = -0.8
    tracer = SphereRayTracer(sphere_r, schwarz_r, 1000, STEP, 10)
    energy = math.sin(-theta) * math.sqrt(-1.0 + schwarz_r / r)
    rotation = r * math.cos(theta)

    angle = tracer.solve_geodesic(r, energy, rotation, False)

    u_bar = -math.sqrt((energy / rotation) ** 2 - (1.0 - schwarz_r / r) / (r * r))
    reference = SchwarzschildBlackHole(schwarz_r).trace_light_ray(
        1.0 / r,
        u_bar,
        4 * math.pi,
        u_stop=1.0 / sphere_r,
    )
    assert reference.status == 1
    assert angle == pytest.approx(reference.t[-1], abs=1e-4)


def test_geodesics_from_within_horizon():
    tracer = SphereRayTracer(100.0, 10.0, 1000, STEP, 10)
    # straight out with positive energy leaves through the sphere right above
    assert tracer.solve_geodesic(5.0, 1.0, 0.0, False) == 0.0
    assert tracer.solve_geodesic(5.0, -1.0, 0.0, False) == NO_VALUE
    assert tracer.solve_geodesic(5.0, 0.0, 0.0, False) == NO_VALUE
    # negative energy never leaves the horizon
    assert tracer.solve_geodesic(5.0, -0.5, 3.0, False) == NO_VALUE

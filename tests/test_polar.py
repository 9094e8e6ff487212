import math

import numpy as np
import pytest

from schwarzschild_view.core.polar import (
    angle_between,
    carthesic_to_polar,
    look_to_vec_mat,
    polar2_to_carthesic,
    polar_to_carthesic,
    rotation_x,
    rotation_z,
    sign,
    trans_polar_vec,
)


@pytest.mark.parametrize(
    "vec",
    [
        (1.0, 0.0, 0.0),
        (3.0, -4.0, 12.0),
        (-2.0, -0.5, -7.0),
        (0.0, 0.0, 5.0),
    ],
)
def test_polar_round_trip(vec):
    vec = np.array(vec)
    np.testing.assert_allclose(polar_to_carthesic(carthesic_to_polar(vec)), vec, atol=1e-12)


def test_polar_elevation_is_measured_from_equator():
    polar = carthesic_to_polar(np.array([0.0, 0.0, 2.0]))
    assert polar[0] == pytest.approx(2.0)
    assert polar[2] == pytest.approx(math.pi / 2)


def test_origin_has_zero_angles():
    np.testing.assert_array_equal(carthesic_to_polar(np.zeros(3)), np.zeros(3))


def test_polar2_is_unit_vector():
    vec = polar2_to_carthesic(0.7, -0.3)
    assert np.linalg.norm(vec) == pytest.approx(1.0)


def test_trans_polar_vec_rotates():
    polar = trans_polar_vec(np.array([2.0, 0.0, 0.0]), rotation_z(math.pi / 2))
    np.testing.assert_allclose(polar, [2.0, math.pi / 2, 0.0], atol=1e-12)


@pytest.mark.parametrize(
    "look_to",
    [
        (1.0, 0.0, 0.0),
        (-25.0, 3.0, 1.0),
        (0.2, -0.1, -0.9),
    ],
)
def test_look_to_vec_mat_is_rotation(look_to):
    mat = look_to_vec_mat(np.array(look_to))
    np.testing.assert_allclose(mat @ mat.T, np.identity(3), atol=1e-12)
    assert np.linalg.det(mat) == pytest.approx(1.0)
    np.testing.assert_allclose(mat[:, 2], np.array(look_to) / np.linalg.norm(look_to), atol=1e-12)


def test_rotations():
    np.testing.assert_allclose(rotation_z(math.pi / 2) @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(rotation_x(math.pi / 2) @ [0.0, 1.0, 0.0], [0.0, 0.0, 1.0], atol=1e-12)


def test_angle_between():
    assert angle_between(np.array([1.0, 0.0, 0.0]), np.array([0.0, 2.0, 0.0])) == pytest.approx(
        math.pi / 2,
    )
    assert angle_between(np.array([1.0, 1.0, 0.0]), np.array([-2.0, -2.0, 0.0])) == pytest.approx(
        math.pi,
    )
    assert angle_between(np.zeros(3), np.array([1.0, 0.0, 0.0])) == 0.0


def test_sign_treats_zero_as_positive():
    assert sign(0.0) == 1.0
    assert sign(3.0) == 1.0
    assert sign(-0.5) == -1.0

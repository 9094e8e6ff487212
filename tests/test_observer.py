import math

import numpy as np
import pytest

from schwarzschild_view.core.observer import (
    SAFE_FRAC_PI_2,
    Observer,
    ObserverState,
    TransformationPipeline,
)


@pytest.fixture
def observer():
    return Observer(10.0, math.pi / 2, 1280, 720)


def aberration_factor(pipeline: TransformationPipeline) -> float:
    return float(pipeline.psi_factor_and_position[0])


def assert_rotation(mat: np.ndarray) -> None:
    rotation = mat[:3, :3].astype(float)
    np.testing.assert_allclose(rotation @ rotation.T, np.identity(3), atol=1e-5)


def test_starts_in_frozen_fall(observer):
    assert observer.state is ObserverState.FROZEN_FALL
    np.testing.assert_array_equal(observer.position, [25.0, 0.0, 0.0])
    np.testing.assert_array_equal(observer.camera, [math.pi, 0.0])
    assert observer.radial_position == 25.0


def test_unmoving_has_no_aberration(observer):
    observer.start_unmoving()

    np.testing.assert_allclose(observer.velocity(), [1.0 / math.sqrt(0.6), 0.0, 0.0])
    assert aberration_factor(observer.calc_transformation_pipeline()) == 0.0


def test_frozen_fall_aberration(observer):
    pipeline = observer.calc_transformation_pipeline()

    assert observer.psi == pytest.approx(1.0 / 0.6)
    assert aberration_factor(pipeline) == pytest.approx(math.sqrt(10.0 / 25.0), rel=1e-6)
    np.testing.assert_allclose(pipeline.psi_factor_and_position[1:], [25.0, 0.0, 0.0])


def test_frozen_fall_within_horizon(observer):
    observer.position = np.array([5.0, 0.0, 0.0])

    pipeline = observer.calc_transformation_pipeline()

    assert aberration_factor(pipeline) == pytest.approx(math.sqrt(0.5), rel=1e-6)


def test_unmoving_within_horizon(observer):
    observer.start_unmoving()
    observer.position = np.array([0.0, 5.0, 0.0])

    np.testing.assert_allclose(observer.velocity(), [0.0, -1.0, 0.0])
    assert aberration_factor(observer.calc_transformation_pipeline()) == 0.0


def test_pipeline_layout(observer):
    pipeline = observer.calc_transformation_pipeline()
    data = pipeline.to_bytes()

    assert len(data) == TransformationPipeline.NBYTES == 208
    first = np.frombuffer(data[:64], dtype="<f4").reshape(4, 4)
    # column major
    np.testing.assert_array_equal(first.T, pipeline.display_to_movement)
    np.testing.assert_array_equal(np.frombuffer(data[192:], dtype="<f4"), pipeline.psi_factor_and_position)

    as_dict = pipeline.as_dict()
    assert set(as_dict) == {
        "display_to_movement",
        "movement_to_central",
        "central_to_uv",
        "psi_factor_and_position",
    }
    assert len(as_dict["central_to_uv"]) == 4


def test_matrices_are_padded_rotations(observer):
    pipeline = observer.calc_transformation_pipeline()

    for mat in (pipeline.movement_to_central, pipeline.central_to_uv):
        assert mat.dtype == np.float32
        assert mat.shape == (4, 4)
        assert_rotation(mat)
        np.testing.assert_array_equal(mat[3], [0.0, 0.0, 0.0, 1.0])


def test_orbit(observer):
    observer.start_orbit(18.0)
    assert observer.state is ObserverState.ORBITING

    for _ in range(30):
        observer.update_position(np.zeros(3))

    pipeline = observer.calc_transformation_pipeline()
    assert observer.radial_position != 25.0
    assert observer.psi > 1.0
    assert 0.0 < aberration_factor(pipeline) < 1.0
    assert_rotation(pipeline.movement_to_central)
    assert_rotation(pipeline.central_to_uv)


def test_orbit_ignores_input(observer):
    observer.start_orbit(18.0)
    expected = observer.orbit.get_position()

    observer.update_position(np.array([100.0, 0.0, 0.0]))

    np.testing.assert_allclose(observer.position, observer.orbit.get_position())
    assert np.linalg.norm(observer.position - expected) < 1.0


def test_orbit_cannot_start_within_horizon(observer):
    observer.position = np.array([5.0, 0.0, 0.0])

    observer.start_orbit(18.0)

    assert observer.state is ObserverState.FROZEN_FALL
    assert observer.orbit is None


def test_radial_fall(observer):
    observer.start_orbit(0.0)
    assert observer.orbit.is_central_fall()

    for _ in range(60):
        observer.update_position(np.zeros(3))

    assert observer.radial_position < 25.0
    pipeline = observer.calc_transformation_pipeline()
    assert aberration_factor(pipeline) > 0.0


def test_free_movement_follows_camera(observer):
    observer.update_position(np.array([1.0, 0.0, 0.0]))

    # camera looks towards -x at the start
    np.testing.assert_allclose(observer.position, [25.0 - 0.051, 0.0, 0.0], atol=1e-12)


def test_singular_observer_keeps_last_values(observer):
    observer.calc_transformation_pipeline()
    psi = observer.psi
    observer.position = np.array([10.0, 0.0, 0.0])
    assert observer.is_singular()

    observer.calc_transformation_pipeline()
    assert observer.psi == psi


def test_move_camera_clamps_pitch(observer):
    observer.move_camera(0.0, 1e6)
    assert observer.camera[1] == SAFE_FRAC_PI_2

    observer.move_camera(0.0, -1e7)
    assert observer.camera[1] == -SAFE_FRAC_PI_2


def test_move_camera_uses_sensitivity(observer):
    observer.move_camera(72.0, 0.0)
    assert observer.camera[0] == pytest.approx(math.pi + 72.0 * (math.pi / 2) / 720)


def test_reset_to_start(observer):
    observer.start_orbit(18.0)
    for _ in range(10):
        observer.update_position(np.zeros(3))
    observer.move_camera(50.0, 20.0)

    observer.reset_to_start()

    assert observer.state is ObserverState.FROZEN_FALL
    assert observer.orbit is None
    np.testing.assert_array_equal(observer.position, [25.0, 0.0, 0.0])
    np.testing.assert_array_equal(observer.camera, [math.pi, 0.0])


def test_update_screen_format(observer):
    observer.update_screen_format(720, 720)
    assert observer.fov_scaling[0, 0] == pytest.approx(1.0)
    assert observer.fov_scaling[1, 1] == pytest.approx(1.0)

import math

import numpy as np
import pytest

from schwarzschild_view.core.controller import ObserverController
from schwarzschild_view.core.observer import MOVEMENT_STEP, Observer


@pytest.fixture
def observer():
    return Observer(10.0, math.pi / 2, 1280, 720)


def test_unbound_keys_are_rejected():
    controller = ObserverController()
    assert not controller.process_keyboard("q", True)
    assert controller.process_keyboard("W", True)
    assert controller.amounts["forward"] == 1.0

    assert controller.process_keyboard("w", False)
    assert controller.amounts["forward"] == 0.0


def test_forward_moves_along_camera(observer):
    controller = ObserverController(speed=8.0)
    controller.process_keyboard("up", True)

    controller.update_observer(observer, 1.0 / 60.0)

    step = MOVEMENT_STEP * 8.0 / 60.0
    np.testing.assert_allclose(observer.position, [25.0 - step, 0.0, 0.0], atol=1e-12)


def test_opposite_keys_cancel(observer):
    controller = ObserverController()
    controller.process_keyboard("a", True)
    controller.process_keyboard("d", True)
    controller.process_keyboard("space", True)
    controller.process_keyboard("shift", True)

    controller.update_observer(observer, 1.0)

    np.testing.assert_array_equal(observer.position, [25.0, 0.0, 0.0])


def test_held_keys_keep_moving(observer):
    controller = ObserverController()
    controller.process_keyboard("space", True)

    controller.update_observer(observer, 0.5)
    controller.update_observer(observer, 0.5)

    assert observer.position[2] == pytest.approx(2 * MOVEMENT_STEP * 8.0 * 0.5)


def test_release_all(observer):
    controller = ObserverController()
    controller.process_keyboard("s", True)
    controller.release_all()

    controller.update_observer(observer, 1.0)

    np.testing.assert_array_equal(observer.position, [25.0, 0.0, 0.0])


def test_mouse_is_consumed_once(observer):
    controller = ObserverController(sensitivity=2.0)
    controller.process_mouse(10.0, 0.0)

    controller.update_observer(observer, 1.0 / 60.0)
    yaw = observer.camera[0]
    controller.update_observer(observer, 1.0 / 60.0)

    assert yaw == pytest.approx(math.pi + 20.0 * observer.mouse_sensitivity)
    assert observer.camera[0] == yaw

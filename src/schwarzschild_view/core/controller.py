"""Tracks key and mouse inputs to move the observer."""

import numpy as np

from schwarzschild_view.core.observer import Observer

KEY_BINDINGS = {
    "w": "forward",
    "up": "forward",
    "s": "backward",
    "down": "backward",
    "a": "left",
    "left": "left",
    "d": "right",
    "right": "right",
    "space": "up",
    "shift": "down",
}


class ObserverController:
    def __init__(self, speed: float = 8.0, sensitivity: float = 1.0):
        self.speed = speed
        self.sensitivity = sensitivity
        self.amounts = dict.fromkeys(("forward", "backward", "left", "right", "up", "down"), 0.0)
        self.rotate_horizontal = 0.0
        self.rotate_vertical = 0.0

    def process_keyboard(self, key: str, pressed: bool) -> bool:
        """Record a key press or release, returns False for unbound keys."""
        action = KEY_BINDINGS.get(key.lower())
        if action is None:
            return False
        self.amounts[action] = 1.0 if pressed else 0.0
        return True

    def process_mouse(self, mouse_dx: float, mouse_dy: float) -> None:
        self.rotate_horizontal = mouse_dx * self.sensitivity
        self.rotate_vertical = mouse_dy * self.sensitivity

    def release_all(self) -> None:
        for action in self.amounts:
            self.amounts[action] = 0.0

    def update_observer(self, observer: Observer, dt: float) -> None:
        direction = np.array(
            [
                self.amounts["forward"] - self.amounts["backward"],
                self.amounts["left"] - self.amounts["right"],
                self.amounts["up"] - self.amounts["down"],
            ],
        )
        observer.update_position(direction * self.speed * dt)

        # mouse movement is consumed once per frame
        observer.move_camera(self.rotate_horizontal, self.rotate_vertical)
        self.rotate_horizontal = 0.0
        self.rotate_vertical = 0.0


__all__ = ["KEY_BINDINGS", "ObserverController"]

import math
from os import getenv

SCHWARZ_R = float(getenv("SCHWARZ_VIEW_SCHWARZ_R", "10"))
"""Radius of the event horizon, fixed for the session"""

SPHERE_RADII = tuple(
    float(radius) for radius in getenv("SCHWARZ_VIEW_SPHERES", "100").split(",") if radius.strip()
)
"""Radii of the textured spheres around the black hole"""

POINT_CLOUD = getenv("SCHWARZ_VIEW_POINT_CLOUD", "heart").lower()
FARSIDE = getenv("SCHWARZ_VIEW_FARSIDE", "1").lower() not in ("0", "false", "no", "off")

FOV = math.pi / 2
SCREEN_WIDTH = 1280
SCREEN_HEIGHT = 720

# Ray fan resolution and shooting limits
NR_NODES_HALF = 200
MAX_ITER = 1000
DEFAULT_STEP = math.pi / 100

FRAME_TIME = 1.0 / 60.0

ALLOWED_MODES = (
    "unmoving",
    "frozen_fall",
    "fall",
    "orbit",
)

ALLOWED_POINT_CLOUDS = (
    "none",
    "spiral",
    "accretion_disk",
    "heart",
)

# Rotational momentum of the orbit button
ORBIT_ROTATION = 18.0


__all__ = [
    "ALLOWED_MODES",
    "ALLOWED_POINT_CLOUDS",
    "DEFAULT_STEP",
    "FARSIDE",
    "FOV",
    "FRAME_TIME",
    "MAX_ITER",
    "NR_NODES_HALF",
    "ORBIT_ROTATION",
    "POINT_CLOUD",
    "SCHWARZ_R",
    "SCREEN_HEIGHT",
    "SCREEN_WIDTH",
    "SPHERE_RADII",
]

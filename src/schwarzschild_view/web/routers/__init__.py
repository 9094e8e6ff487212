from fastapi import APIRouter

from schwarzschild_view.web.routers.observer import router as observer_router
from schwarzschild_view.web.routers.orbit import router as orbit_router
from schwarzschild_view.web.routers.points import router as points_router
from schwarzschild_view.web.routers.ray_fan import router as ray_fan_router

api_router = APIRouter(
    prefix="/api",
)

api_router.include_router(
    observer_router,
)

api_router.include_router(
    orbit_router,
)

api_router.include_router(
    ray_fan_router,
)

api_router.include_router(
    points_router,
)

__all__ = ["api_router"]

import io

import numpy as np
from fastapi import APIRouter, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from PIL import Image

from schwarzschild_view.core.sphere_ray_tracer import NO_VALUE
from schwarzschild_view.web.session import encode_ray_fan, get_session

router = APIRouter(
    prefix="/ray-fan",
    tags=["ray-fan"],
)


def _solve(sphere_r: float) -> tuple[float, np.ndarray]:
    session = get_session()
    if sphere_r not in session.ray_tracers:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sphere not found",
        )
    with session.lock:
        values = session.ray_fan(sphere_r)
        r = session.observer.radial_position
    return r, values


@router.get("/{sphere_r}")
async def ray_fan(sphere_r: float) -> dict:
    """Ray fan of a sphere for the observer's current radius."""
    r, values = await run_in_threadpool(_solve, sphere_r)
    return {
        "sphere_r": sphere_r,
        "observer_r": r,
        "no_value": NO_VALUE,
        "values": values.tolist(),
    }


def render_ray_fan_png(values: np.ndarray) -> bytes:
    """Render a ray fan as a 1 pixel high grayscale PNG."""
    out_img = Image.fromarray(encode_ray_fan(values).reshape(1, -1))
    bio = io.BytesIO()
    out_img.save(bio, format="PNG")
    bio.seek(0)
    return bio.getvalue()


@router.get("/{sphere_r}/texture.png", response_class=StreamingResponse)
async def ray_fan_texture(sphere_r: float) -> StreamingResponse:
    """Stream the ray fan as the lookup texture the sphere shader samples."""
    _, values = await run_in_threadpool(_solve, sphere_r)
    png = await run_in_threadpool(render_ray_fan_png, values)
    return StreamingResponse(io.BytesIO(png), media_type="image/png")


__all__ = ["render_ray_fan_png", "router"]

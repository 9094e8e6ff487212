from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from schwarzschild_view.web.constants import ALLOWED_MODES, FRAME_TIME
from schwarzschild_view.web.session import get_session

router = APIRouter(
    prefix="/observer",
    tags=["observer"],
)


@router.get("")
def observer_state() -> dict:
    """Position, camera and state of motion of the observer."""
    session = get_session()
    with session.lock:
        return session.observer_summary()


@router.post("/mode")
def set_mode(
    mode: Annotated[str, Query()],
    rotation: Annotated[float | None, Query(ge=0.0)] = None,
) -> dict:
    """
    Switch between standing still, frozen fall, radial fall and orbit.

    Starting an orbit within the horizon keeps the previous state, the
    response always reports the state that is active afterwards.
    """
    clean_mode = mode.lower()
    if clean_mode not in ALLOWED_MODES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported observer mode",
        )

    session = get_session()
    with session.lock:
        session.set_mode(clean_mode, rotation)
        return session.observer_summary()


@router.post("/reset")
def reset() -> dict:
    """Back to the start position in a frozen fall."""
    session = get_session()
    with session.lock:
        session.observer.reset_to_start()
        return session.observer_summary()


def _advance(dt: float, keys: list[str], dx: float, dy: float) -> dict:
    session = get_session()
    with session.lock:
        session.advance_frame(dt, keys, dx, dy)
        return session.observer_summary()


@router.post("/frame")
async def advance_frame(
    dt: Annotated[float, Query(gt=0.0, le=1.0)] = FRAME_TIME,
    keys: Annotated[list[str] | None, Query()] = None,
    dx: Annotated[float, Query()] = 0.0,
    dy: Annotated[float, Query()] = 0.0,
) -> dict:
    """Advance the session by one frame with the given keys held and mouse movement."""
    return await run_in_threadpool(_advance, dt, keys or [], dx, dy)


@router.get("/pipeline")
def pipeline() -> dict:
    """Transformation pipeline for the current frame."""
    session = get_session()
    with session.lock:
        return session.observer.calc_transformation_pipeline().as_dict()


@router.get("/pipeline.bin")
def pipeline_bytes() -> Response:
    """Transformation pipeline as the raw uniform block."""
    session = get_session()
    with session.lock:
        data = session.observer.calc_transformation_pipeline().to_bytes()
    return Response(content=data, media_type="application/octet-stream")


__all__ = ["router"]

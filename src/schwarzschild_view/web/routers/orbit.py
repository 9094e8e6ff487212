from typing import Annotated

from fastapi import APIRouter, Query

from schwarzschild_view.core.orbit import OrbitStability
from schwarzschild_view.web.session import get_session

router = APIRouter(
    prefix="/orbit",
    tags=["orbit"],
)


@router.get("/stability")
def stability(
    rotation: Annotated[float, Query(ge=0.0)],
    r: Annotated[float | None, Query(gt=0.0)] = None,
) -> dict:
    """
    Classify an orbit without simulating it.

    Uses the observer's current radius unless ``r`` is given. The color is
    the one of the GUI indicator.
    """
    session = get_session()
    with session.lock:
        name = session.stability(rotation, r)
    return {
        "stability": name,
        "color": OrbitStability[name].value,
    }


__all__ = ["router"]

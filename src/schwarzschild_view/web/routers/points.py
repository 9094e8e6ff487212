import numpy as np
from fastapi import APIRouter, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from schwarzschild_view.core.physics import SchwarzschildBlackHole
from schwarzschild_view.core.ray_connector import RayConnector
from schwarzschild_view.web.session import get_session

router = APIRouter(
    prefix="/points",
    tags=["points"],
)


@router.get("")
def vertices() -> dict:
    """Per vertex ``[x, y, z, incoming_angle]`` of the tracked point cloud."""
    session = get_session()
    with session.lock:
        cloud = session.point_cloud
        if cloud is None:
            return {"count": 0, "vertices": [], "vertices_farside": []}
        return {
            "count": len(cloud),
            "vertices": cloud.vertices.tolist(),
            "vertices_farside": cloud.vertices_farside.tolist(),
        }


def compare_with_reference(connector: RayConnector) -> dict:
    """
    Put the discrete ray next to an adaptive shot from the observer end.

    The shot starts with the slope of the discrete ray, so both curves only
    agree if the boundary value problem was solved well.
    """
    phi, r = connector.ray_profile()
    black_hole = SchwarzschildBlackHole(connector.schwarz_r)
    solution = black_hole.trace_light_ray(
        connector.u_ray[0],
        connector.observer_derivative(),
        phi[-1],
    )
    reference = np.full(len(phi), np.nan)
    reachable = phi <= solution.t[-1]
    reference[reachable] = 1.0 / solution.sol(phi[reachable])[0]
    return {
        "needs_reset": connector.needs_reset,
        "less_than_180": connector.less_than_180,
        "phi": phi.tolist(),
        "r": r.tolist(),
        "reference_r": [None if np.isnan(value) else float(value) for value in reference],
    }


def _profile(index: int, farside: bool) -> dict:
    session = get_session()
    with session.lock:
        cloud = session.point_cloud
        connectors = [] if cloud is None else (cloud.points_farside if farside else cloud.points)
        if not 0 <= index < len(connectors):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Point not found",
            )
        return compare_with_reference(connectors[index])


@router.get("/{index}/profile")
async def profile(index: int, farside: bool = False) -> dict:
    """Discretized light ray of one point, for checking the solver by eye."""
    return await run_in_threadpool(_profile, index, farside)


__all__ = ["compare_with_reference", "router"]

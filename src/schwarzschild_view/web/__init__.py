from __future__ import annotations

from importlib.metadata import version
from os import getenv
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape

from schwarzschild_view.web.constants import FRAME_TIME, ORBIT_ROTATION
from schwarzschild_view.web.routers import api_router
from schwarzschild_view.web.session import get_session

app = FastAPI(
    title="Schwarzschild View",
    version=version("schwarzschild-view"),
)

# Ray fans and point clouds are large JSON arrays
app.add_middleware(GZipMiddleware, minimum_size=500)


# Set up Jinja2 template environment
templates_dir = Path(__file__).parent / "templates"
template_env = Environment(
    loader=FileSystemLoader(templates_dir),
    autoescape=select_autoescape(["html", "xml"]),
)
index_template = template_env.get_template("index.html")


@app.get("/", response_class=HTMLResponse)
def index() -> HTMLResponse:
    """Render the status page of the running simulation."""
    session = get_session()
    with session.lock:
        summary = session.observer_summary()
        pipeline = session.observer.calc_transformation_pipeline()
        points = len(session.point_cloud) if session.point_cloud is not None else 0
        spheres = sorted(session.ray_tracers)

    html = index_template.render(
        observer=summary,
        aberration=float(pipeline.psi_factor_and_position[0]),
        spheres=spheres,
        points=points,
        frame_time=FRAME_TIME,
        orbit_rotation=ORBIT_ROTATION,
    )
    return HTMLResponse(html)


app.include_router(
    api_router,
)


def run(
    *,
    port: int | None = None,
    host: str = "127.0.0.1",
    reload: bool = False,
) -> None:
    """Serve the simulation session, on the PORT env var or 2025 by default."""
    if port is None:
        port = int(getenv("PORT", "2025"))

    import uvicorn  # noqa: PLC0415

    uvicorn.run("schwarzschild_view.web:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    run()

"""Schwarzschild View: relativistic observer in the field of a black hole."""

from schwarzschild_view.core.observer import Observer, ObserverState, TransformationPipeline
from schwarzschild_view.core.orbit import Orbit, OrbitStability
from schwarzschild_view.core.physics import SchwarzschildBlackHole
from schwarzschild_view.core.ray_connector import RayConnector
from schwarzschild_view.core.sphere_ray_tracer import NO_VALUE, SphereRayTracer


def main() -> None:
    """Configure logging and start the simulation server."""
    import argparse  # noqa: PLC0415
    import logging  # noqa: PLC0415

    from schwarzschild_view.web import run as start_api  # noqa: PLC0415

    parser = argparse.ArgumentParser(
        "schwarzschild-view",
        description="Schwarzschild View: observer simulation around a black hole",
    )

    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to run the web server on (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to run the web server on (default: 2025 or PORT env var)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for the web server",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level of the simulation (default: INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s: %(message)s",
    )

    return start_api(
        port=args.port,
        host=args.host,
        reload=args.reload,
    )


__all__ = [
    "NO_VALUE",
    "Observer",
    "ObserverState",
    "Orbit",
    "OrbitStability",
    "RayConnector",
    "SchwarzschildBlackHole",
    "SphereRayTracer",
    "TransformationPipeline",
    "main",
]

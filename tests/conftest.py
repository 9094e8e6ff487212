import pytest
from fastapi.testclient import TestClient

from schwarzschild_view.web import app
from schwarzschild_view.web.session import Session, reset_session


@pytest.fixture
def session():
    return reset_session(Session(schwarz_r=10.0, sphere_radii=(100.0,), point_cloud="none", farside=False))


@pytest.fixture
def client(session):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def anyio_backend():
    return "asyncio"

from fastapi import FastAPI
from fastapi.testclient import TestClient

from hub_api.app.routers.health import health_router
from tests.conftest import FakeDatabase, make_settings


def test_live_is_always_200(test_app):
    client = TestClient(test_app)
    r = client.get("/health/live")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_ready_503_when_components_missing():
    app = FastAPI()
    app.include_router(health_router)
    client = TestClient(app)
    r = client.get("/health/ready")
    assert r.status_code == 503
    assert r.json()["status"] == "unhealthy"


def test_ready_503_when_db_unhealthy(test_app):
    test_app.state.database = FakeDatabase(healthy=False)
    client = TestClient(test_app)
    r = client.get("/health/ready")
    assert r.status_code == 503
    assert r.json() == {"status": "unhealthy", "message": "Database health check failed: boom"}


def test_ready_503_when_health_check_times_out(test_app):
    test_app.state.settings = make_settings(readiness_ping_timeout_seconds=0.01)
    test_app.state.database = FakeDatabase(health_delay=0.5)
    client = TestClient(test_app)
    r = client.get("/health/ready")
    assert r.status_code == 503
    assert r.json()["message"] == "Database health check timed out"


def test_ready_200_when_ready(test_app):
    test_app.state.database = FakeDatabase(healthy=True)
    client = TestClient(test_app)
    r = client.get("/health/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy", "message": "Database connection is healthy"}

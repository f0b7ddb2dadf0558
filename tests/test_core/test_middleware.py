import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from floodguard.core.exceptions import (
    BroadcastException,
    PersistenceException,
    ResourceNotFoundException,
)
from floodguard.core.middleware import ErrorHandlingMiddleware, LoggingMiddleware


@pytest.fixture
def client():
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(LoggingMiddleware)

    @app.get("/success")
    async def success():
        return {"message": "success"}

    @app.get("/not-found")
    async def not_found():
        raise ResourceNotFoundException("No data available", {"resource": "latest"})

    @app.get("/database-error")
    async def database_error():
        raise PersistenceException("")

    @app.get("/broker-error")
    async def broker_error():
        raise BroadcastException("")

    @app.get("/unknown-error")
    async def unknown_error():
        raise Exception("Unexpected error")

    with TestClient(app) as client:
        yield client


def test_success(client):
    response = client.get("/success")
    assert response.status_code == 200
    assert response.json() == {"message": "success"}
    assert "X-Request-ID" in response.headers


def test_request_id_is_echoed(client):
    response = client.get("/success", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"


def test_resource_not_found(client):
    response = client.get("/not-found")
    assert response.status_code == 404
    data = response.json()
    assert data["error"]["message"] == "No data available"
    assert data["error"]["code"] == "ResourceNotFoundException"
    assert "'resource': 'latest'" in response.headers["X-Error-Details"]


def test_persistence_error(client):
    response = client.get("/database-error")
    assert response.status_code == 500
    assert response.json()["error"]["message"] == "Database operation failed"


def test_broadcast_error(client):
    response = client.get("/broker-error")
    assert response.status_code == 503
    assert response.json()["error"]["message"] == "Downstream service unavailable"


def test_unknown_error(client):
    response = client.get("/unknown-error")
    assert response.status_code == 500
    data = response.json()
    assert data["error"]["message"] == "An unexpected error occurred."
    assert data["error"]["code"] == "InternalServerException"

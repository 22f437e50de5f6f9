import logging

import pytest
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.testclient import TestClient

from deva.middleware import timing_middleware


@pytest.fixture
def failing_client():
    app = FastAPI()
    app.middleware("http")(timing_middleware)
    app.add_middleware(CORSMiddleware, allow_origins=["http://localhost:3000"], allow_methods=["*"])

    @app.get("/ok")
    async def ok():
        return {"ok": True}

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return TestClient(app)


def test_successful_requests_are_timed(failing_client):
    response = failing_client.get("/ok")

    assert response.status_code == 200
    assert float(response.headers["X-Process-Time"]) >= 0


def test_unhandled_error_is_logged_timed_and_cors_enabled(failing_client, caplog):
    with caplog.at_level(logging.INFO, logger="deva.middleware.timing"):
        response = failing_client.get("/boom", headers={"Origin": "http://localhost:3000"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "X-Process-Time" in response.headers
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert any("GET /boom 500" in record.getMessage() for record in caplog.records)

"""Tests for global exception handlers.

Validates that errors are returned with a consistent JSON shape, proper
status codes, and no information leakage.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import AppError, ConfigurationAppError
from app.core.exception_handlers import setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/config-error")
    async def config_error():
        raise ConfigurationAppError(
            code="default_locale_not_supported",
            message="Default locale must be one of the supported locales",
            details={"field": "default_locale"},
        )

    @app.get("/app-error")
    async def app_error():
        raise AppError(code="bad_input", message="Bad input")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret internal detail")

    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


def test_configuration_error_returns_500(client):
    response = client.get("/config-error")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "default_locale_not_supported"
    assert error["details"] == {"field": "default_locale"}
    assert "request_id" in error


def test_app_error_returns_400_without_details(client):
    response = client.get("/app-error")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "bad_input"
    assert "details" not in response.json()["error"]


def test_unexpected_error_is_generic(client):
    response = client.get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["error"]["code"] == "internal_server_error"
    assert "secret internal detail" not in response.text


def test_app_error_str_is_message():
    assert str(AppError(code="c", message="readable")) == "readable"

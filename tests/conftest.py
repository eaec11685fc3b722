"""Shared pytest fixtures for the gateway tests."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from factify_gateway.api.routes import router
from factify_gateway.client import InferenceClient, InferenceConfig, client_dependency
from factify_gateway.config import (
    LoggingSettings,
    MonitoringSettings,
    Settings,
    UpstreamSettings,
    settings_dependency,
)
from factify_gateway.errors import install_error_handlers


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", reason: str = "OK", encoding: str | None = "utf-8"):
        self.status_code = status_code
        self.text = text
        self.reason = reason
        self.encoding = encoding


class FakeSession:
    """Stands in for ``requests.Session`` and records every outbound post."""

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[dict[str, Any]] = []
        self.response = FakeResponse(text='[{"label":"POSITIVE","score":0.99}]')
        self.error: BaseException | None = None

    def post(self, url, data=None, headers=None, timeout=None, verify=None):
        self.calls.append(
            {"url": url, "data": data, "headers": dict(headers or {}), "timeout": timeout, "verify": verify}
        )
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    return Settings(
        service_name="factify-gateway-test",
        environment="test",
        upstream=UpstreamSettings(host="api-inference.example.test", timeout_sec=5.0),
        logging=LoggingSettings(log_dir=str(tmp_path / "logs")),
        monitoring=MonitoringSettings(enabled=False),
    )


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def inference_client(test_settings: Settings, fake_session: FakeSession) -> InferenceClient:
    return InferenceClient(InferenceConfig.from_settings(test_settings.upstream), session=fake_session)


@pytest.fixture()
def api_app(test_settings: Settings, inference_client: InferenceClient) -> FastAPI:
    app = FastAPI()
    install_error_handlers(app)
    app.include_router(router)
    app.dependency_overrides[settings_dependency] = lambda: test_settings
    app.dependency_overrides[client_dependency] = lambda: inference_client
    return app


@pytest.fixture()
def api_client(api_app: FastAPI) -> TestClient:
    return TestClient(api_app)

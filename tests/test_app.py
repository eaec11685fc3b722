"""Tests for the application factory wiring."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from factify_gateway import create_app
from factify_gateway.config import reload_settings


@pytest.fixture()
def app_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FACTIFY_CONFIG_FILE", raising=False)
    monkeypatch.setenv("FACTIFY_DISABLE_METRICS", "1")
    monkeypatch.setenv("FACTIFY_LOGGING__LOG_DIR", str(tmp_path / "logs"))
    reload_settings()
    yield tmp_path
    reload_settings()


def test_create_app_serves_health(app_env):
    client = TestClient(create_app())

    response = client.get("/analyze/health")

    assert response.status_code == 200
    assert response.content == b""
    assert (app_env / "logs" / "factify-gateway.log").exists()


def test_create_app_rejects_invalid_text_without_forwarding(app_env, monkeypatch):
    def _fail(*_args, **_kwargs):  # pragma: no cover - must not be reached
        raise AssertionError("upstream must not be contacted")

    monkeypatch.setattr("requests.Session.post", _fail)
    client = TestClient(create_app())

    response = client.post("/analyze/text", json={"text": "", "enableOptions": {"a": True}, "apikey": "k"})

    assert response.status_code == 400
    assert response.content == b""


def test_create_app_skips_metrics_when_disabled(app_env, monkeypatch):
    started: list[int] = []
    monkeypatch.setattr("factify_gateway.app.ensure_metrics_server", lambda port: started.append(port))
    monkeypatch.delenv("FACTIFY_DISABLE_METRICS")
    monkeypatch.setenv("FACTIFY_MONITORING__ENABLED", "false")
    reload_settings()

    create_app()

    assert started == []


def test_create_app_starts_metrics_when_enabled(app_env, monkeypatch):
    started: list[int] = []
    monkeypatch.setattr("factify_gateway.app.ensure_metrics_server", lambda port: started.append(port))
    monkeypatch.delenv("FACTIFY_DISABLE_METRICS")
    monkeypatch.setenv("FACTIFY_MONITORING__PROMETHEUS_PORT", "9555")
    reload_settings()

    create_app()

    assert started == [9555]

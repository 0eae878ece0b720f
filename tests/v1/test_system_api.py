"""Tests for health and public configuration endpoints."""

from datetime import datetime

from fastapi import status
from fastapi.testclient import TestClient

from role_gate.core.settings import Settings
from role_gate.services.readiness import ReadinessTracker


def test_health_when_ready(client: TestClient) -> None:
    r = client.get("/api/v1/health")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["status"] == "ok"
    assert data["ready"] is True
    assert data["state"] == "ready"
    assert datetime.fromisoformat(data["timestamp"]).tzinfo is not None


def test_health_answers_while_disconnected(
    client: TestClient, readiness: ReadinessTracker
) -> None:
    readiness.mark_disconnected("token revoked")

    r = client.get("/api/v1/health")

    assert r.status_code == status.HTTP_200_OK
    assert r.json()["ready"] is False
    assert r.json()["state"] == "disconnected"


def test_system_config_hides_secrets(client: TestClient, test_settings: Settings) -> None:
    r = client.get("/api/v1/system/config")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["app"]["name"] == test_settings.app_name
    assert "verification" in data

    serialized = r.text
    assert test_settings.bot_token not in serialized
    assert test_settings.guild_id not in serialized
    assert test_settings.role_id not in serialized


def test_cors_preflight_allows_post(client: TestClient) -> None:
    r = client.options(
        "/api/v1/request-verification",
        headers={
            "Origin": "http://example.test",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert r.status_code == status.HTTP_200_OK
    assert "POST" in r.headers["access-control-allow-methods"]

"""Tests for the verification workflow endpoints."""

from typing import Any

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from role_gate.context import VerificationContext
from role_gate.main import create_app
from role_gate.services.readiness import ReadinessTracker
from tests.conftest import TEST_IDENTITY, TEST_ROLE_ID, FakeClock, FakeDiscord, solve

FINGERPRINT = "a3f9c2e1b7d4"


def _anti_automation(client: TestClient) -> dict[str, Any]:
    """Fetch a challenge and a liveness token the way the front end does."""
    r = client.get("/api/v1/challenge")
    assert r.status_code == status.HTTP_200_OK
    challenge = r.json()

    r = client.post("/api/v1/liveness", json={"fingerprint": FINGERPRINT})
    assert r.status_code == status.HTTP_200_OK

    return {
        "challenge_token": challenge["token"],
        "challenge_answer": solve(challenge["question"]),
        "liveness_token": r.json()["token"],
        "fingerprint": FINGERPRINT,
    }


def _request_code(client: TestClient, identity: str = TEST_IDENTITY, **overrides: Any) -> Any:
    body = {"identity": identity, **_anti_automation(client), **overrides}
    return client.post("/api/v1/request-verification", json=body)


def test_challenge_shape(client: TestClient) -> None:
    r = client.get("/api/v1/challenge")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert len(data["token"]) == 32
    left, right = (int(part) for part in data["question"].split("+"))
    assert 1 <= left <= 10 and 1 <= right <= 10


def test_liveness_requires_fingerprint(client: TestClient) -> None:
    for body in ({}, {"fingerprint": ""}, {"fingerprint": "   "}):
        r = client.post("/api/v1/liveness", json=body)
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["code"] == "invalid_input"


def test_full_flow_grants_role(client: TestClient, discord: FakeDiscord) -> None:
    r = _request_code(client)
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"success": True, "message": "Code sent successfully!"}

    code = discord.last_code(TEST_IDENTITY)
    r = client.post(
        "/api/v1/confirm-verification", json={"identity": TEST_IDENTITY, "code": code}
    )
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["success"] is True
    assert data["already_granted"] is False
    assert discord.granted == [(TEST_IDENTITY, TEST_ROLE_ID)]

    # A code works exactly once.
    r = client.post(
        "/api/v1/confirm-verification", json={"identity": TEST_IDENTITY, "code": code}
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["code"] == "code_not_found"


def test_confirm_reports_role_already_held(client: TestClient, discord: FakeDiscord) -> None:
    discord.add_member(TEST_IDENTITY, TEST_ROLE_ID)
    assert _request_code(client).status_code == status.HTTP_200_OK

    r = client.post(
        "/api/v1/confirm-verification",
        json={"identity": TEST_IDENTITY, "code": discord.last_code(TEST_IDENTITY)},
    )

    assert r.status_code == status.HTTP_200_OK
    assert r.json()["already_granted"] is True
    assert discord.granted == []


@pytest.mark.parametrize(
    ("overrides", "expected_code"),
    [
        ({"identity": "12345"}, "invalid_identity"),
        ({"identity": None}, "invalid_identity"),
        ({"challenge_token": None}, "challenge_required"),
        ({"challenge_answer": None}, "challenge_required"),
        ({"challenge_answer": 999}, "challenge_invalid"),
        ({"challenge_token": "0" * 32}, "challenge_invalid"),
        ({"liveness_token": None}, "liveness_required"),
        ({"fingerprint": ""}, "liveness_required"),
        ({"liveness_token": "0" * 32}, "liveness_invalid"),
    ],
)
def test_request_rejections(
    client: TestClient, overrides: dict[str, Any], expected_code: str
) -> None:
    body = {"identity": TEST_IDENTITY, **_anti_automation(client), **overrides}

    r = client.post("/api/v1/request-verification", json=body)

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["code"] == expected_code
    assert "error" in r.json()


def test_challenge_answer_as_string_is_accepted(client: TestClient) -> None:
    tokens = _anti_automation(client)
    tokens["challenge_answer"] = str(tokens["challenge_answer"])

    r = client.post("/api/v1/request-verification", json={"identity": TEST_IDENTITY, **tokens})

    assert r.status_code == status.HTTP_200_OK


def test_unknown_member_is_404(client: TestClient) -> None:
    r = _request_code(client, identity="111111111111111111")

    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json()["code"] == "identity_not_found"


def test_delivery_failure_is_503(client: TestClient, discord: FakeDiscord) -> None:
    discord.fail_delivery = True

    r = _request_code(client)

    assert r.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert r.json()["code"] == "delivery_failed"


def test_lookup_outage_is_503(client: TestClient, discord: FakeDiscord) -> None:
    discord.fail_lookup = True

    r = _request_code(client)

    assert r.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert r.json()["code"] == "collaborator_unavailable"


def test_rate_limit_sets_retry_after(client: TestClient, clock: FakeClock) -> None:
    for _ in range(3):
        assert _request_code(client).status_code == status.HTTP_200_OK

    r = _request_code(client)
    assert r.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert r.json()["code"] == "rate_limited"
    assert int(r.headers["Retry-After"]) == 60

    clock.advance(61)
    assert _request_code(client).status_code == status.HTTP_200_OK


@pytest.mark.parametrize(
    ("body", "expected_code"),
    [
        ({}, "invalid_input"),
        ({"identity": TEST_IDENTITY}, "invalid_input"),
        ({"identity": "abc", "code": "ABCDE"}, "invalid_identity"),
        ({"identity": TEST_IDENTITY, "code": "ABC"}, "invalid_input"),
    ],
)
def test_confirm_rejects_malformed_input(
    client: TestClient, body: dict[str, Any], expected_code: str
) -> None:
    r = client.post("/api/v1/confirm-verification", json=body)

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["code"] == expected_code


def test_confirm_expired_code(client: TestClient, discord: FakeDiscord, clock: FakeClock) -> None:
    assert _request_code(client).status_code == status.HTTP_200_OK
    code = discord.last_code(TEST_IDENTITY)
    clock.advance(181)

    r = client.post(
        "/api/v1/confirm-verification", json={"identity": TEST_IDENTITY, "code": code}
    )

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["code"] == "code_expired"


def test_grant_failure_is_500(client: TestClient, discord: FakeDiscord) -> None:
    assert _request_code(client).status_code == status.HTTP_200_OK
    discord.fail_grant = True

    r = client.post(
        "/api/v1/confirm-verification",
        json={"identity": TEST_IDENTITY, "code": discord.last_code(TEST_IDENTITY)},
    )

    assert r.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert r.json()["code"] == "grant_failed"


def test_workflow_blocked_until_ready(
    client: TestClient, readiness: ReadinessTracker, discord: FakeDiscord
) -> None:
    readiness.mark_disconnected("token revoked")

    r = _request_code(client)
    assert r.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert r.json()["code"] == "not_ready"
    assert discord.sent == []

    r = client.post(
        "/api/v1/confirm-verification", json={"identity": TEST_IDENTITY, "code": "ABCDE"}
    )
    assert r.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    # Challenge and liveness issuance stay available.
    assert client.get("/api/v1/challenge").status_code == status.HTTP_200_OK

    readiness.mark_ready()
    assert _request_code(client).status_code == status.HTTP_200_OK


def test_malformed_json_is_400(client: TestClient) -> None:
    r = client.post(
        "/api/v1/request-verification",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["code"] == "invalid_input"


def test_unexpected_error_is_500(context: VerificationContext) -> None:
    def explode() -> Any:
        raise RuntimeError("boom")

    context.challenges.issue_challenge = explode  # type: ignore[method-assign]
    app = create_app(context)

    with TestClient(app, base_url="http://test", raise_server_exceptions=False) as client:
        r = client.get("/api/v1/challenge")

    assert r.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert r.json() == {"error": "Internal server error.", "code": "internal_error"}

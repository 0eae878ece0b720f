# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass, field

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

os.environ.setdefault("BOT_TOKEN", "test-bot-token")
os.environ.setdefault("GUILD_ID", "100000000000000001")
os.environ.setdefault("ROLE_ID", "200000000000000002")
os.environ.setdefault("STATIC_DIR", "")

from role_gate.context import VerificationContext, build_context
from role_gate.core.settings import Settings
from role_gate.main import create_app
from role_gate.services.collaborators import Account, AccountNotFoundError, CollaboratorError
from role_gate.services.readiness import ConnectionState, ReadinessTracker

TEST_IDENTITY = "123456789012345678"
OTHER_IDENTITY = "876543210987654321"
TEST_ROLE_ID = "200000000000000002"
_TEST_SETTINGS_INSTANCE = Settings()  # type: ignore[call-arg]


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeDiscord:
    """In-memory stand-in for the messaging and membership collaborators."""

    members: dict[str, set[str]] = field(default_factory=dict)
    sent: list[tuple[str, str]] = field(default_factory=list)
    granted: list[tuple[str, str]] = field(default_factory=list)
    fail_lookup: bool = False
    fail_delivery: bool = False
    fail_grant: bool = False

    def add_member(self, identity: str, *roles: str) -> None:
        self.members[identity] = set(roles)

    async def fetch_account(self, identity: str) -> Account:
        if self.fail_lookup:
            raise CollaboratorError("lookup unavailable")
        if identity not in self.members:
            raise AccountNotFoundError(identity)
        return Account(
            identity=identity,
            display_name=f"user-{identity[-4:]}",
            privilege_ids=frozenset(self.members[identity]),
        )

    def account_has_privilege(self, account: Account, privilege_id: str) -> bool:
        return privilege_id in account.privilege_ids

    async def grant_privilege(self, account: Account, privilege_id: str) -> None:
        if self.fail_grant:
            raise CollaboratorError("grant unavailable")
        self.members[account.identity].add(privilege_id)
        self.granted.append((account.identity, privilege_id))

    async def send_direct_message(self, identity: str, text: str) -> None:
        if self.fail_delivery:
            raise CollaboratorError("cannot send messages to this user")
        self.sent.append((identity, text))

    def last_code(self, identity: str) -> str:
        """Extract the code from the most recent DM sent to ``identity``."""
        for recipient, text in reversed(self.sent):
            if recipient == identity:
                return text.split("**")[3]
        raise AssertionError(f"no message sent to {identity}")


def solve(question: str) -> int:
    """Answer an 'a + b' challenge question."""
    left, right = question.split("+")
    return int(left) + int(right)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return _TEST_SETTINGS_INSTANCE


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def discord() -> FakeDiscord:
    fake = FakeDiscord()
    fake.add_member(TEST_IDENTITY)
    fake.add_member(OTHER_IDENTITY)
    return fake


@pytest.fixture()
def readiness() -> ReadinessTracker:
    return ReadinessTracker(initial=ConnectionState.READY)


@pytest.fixture()
def context(
    test_settings: Settings,
    discord: FakeDiscord,
    readiness: ReadinessTracker,
    clock: FakeClock,
) -> VerificationContext:
    return build_context(
        test_settings,
        messaging=discord,
        membership=discord,
        readiness=readiness,
        clock=clock,
    )


@pytest.fixture()
def app(context: VerificationContext) -> FastAPI:
    return create_app(context)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client

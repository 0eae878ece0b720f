"""Interfaces of the external services the verification workflow depends on."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


class CollaboratorError(RuntimeError):
    """Base exception raised when a collaborator call fails."""


class AccountNotFoundError(CollaboratorError):
    """Raised when the account is not a member of the community."""


@dataclass(frozen=True)
class Account:
    """A community member as seen by the privilege-grant collaborator."""

    identity: str
    display_name: str | None = None
    privilege_ids: frozenset[str] = field(default_factory=frozenset)


class MessagingGateway(Protocol):
    """Delivers one-time codes out of band."""

    async def send_direct_message(self, identity: str, text: str) -> None: ...


class MembershipGateway(Protocol):
    """Looks up members and grants them privileges."""

    async def fetch_account(self, identity: str) -> Account: ...

    def account_has_privilege(self, account: Account, privilege_id: str) -> bool: ...

    async def grant_privilege(self, account: Account, privilege_id: str) -> None: ...

"""Data models for authentication and authorization."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from recordkeeper.store.models import Role, UserRecord


class AuthState(StrEnum):
    """Login session state."""

    AWAITING_CREDENTIALS = "awaiting_credentials"
    AUTHENTICATED = "authenticated"
    LOCKED_OUT = "locked_out"


@dataclass(frozen=True)
class Identity:
    """The authenticated view of a user.

    Attributes:
        id: The user's unique ID.
        email: The user's email.
        role: The user's role.
    """

    id: int
    email: str
    role: Role

    @classmethod
    def from_record(cls, record: UserRecord) -> Identity:
        return cls(id=record.id, email=record.email, role=record.role)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass
class LoginSession:
    """Per-session login state, owned by the caller.

    Attributes:
        max_attempts: Failed attempts allowed before lockout.
        state: Current state of the session.
        failed_attempts: Failed attempts so far.
        identity: The logged-in identity once authenticated.
    """

    max_attempts: int = 3
    state: AuthState = AuthState.AWAITING_CREDENTIALS
    failed_attempts: int = 0
    identity: Identity | None = None

    @property
    def attempts_remaining(self) -> int:
        return max(self.max_attempts - self.failed_attempts, 0)

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    @property
    def is_locked_out(self) -> bool:
        return self.state is AuthState.LOCKED_OUT

"""
Session types — identity, credentials, session state and change events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, StrEnum, auto
from typing import Protocol

from pydantic import TypeAdapter

from storefront._errors import StorefrontError
from storefront._types import Millis, Redirect, Result


# ═══════════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════════


class Role(StrEnum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True, slots=True)
class User:
    """Identity snapshot. Replaced wholesale, never patched."""

    id: str
    email: str
    name: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass(frozen=True, slots=True)
class Credentials:
    email: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class Registration:
    name: str
    email: str
    password: str = field(repr=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Session
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Session:
    """
    An authenticated session.

    expires_at is absolute (epoch ms), computed once when the token is issued.
    """

    user: User
    access_token: str = field(repr=False)
    expires_at: Millis


class SessionState(Enum):
    """
    Session lifecycle.

        UNAUTHENTICATED → VALID (login / restore)
        VALID → EXPIRING (renewal timer fired)
        EXPIRING → VALID (renewed)
        any → UNAUTHENTICATED (logout / forced invalidation)
    """

    UNAUTHENTICATED = auto()
    VALID = auto()
    EXPIRING = auto()


class ChangeReason(Enum):
    LOGIN = auto()
    REGISTER = auto()
    RESTORE = auto()
    RENEWED = auto()
    VERIFIED = auto()
    LOGOUT = auto()
    INVALIDATED = auto()  # Renewal failure, negative verify, stale snapshot


@dataclass(frozen=True, slots=True)
class SessionChange:
    """Pushed on every session transition. redirect is set when navigation must follow."""

    state: SessionState
    user: User | None
    reason: ChangeReason
    redirect: Redirect | None = None


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read-only view of the session for consumers (guards, UI)."""

    state: SessionState
    user: User | None
    expires_at: Millis | None
    verified: bool


@dataclass(frozen=True, slots=True)
class LoginOutcome:
    """Successful login: who signed in and where the UI should go next."""

    user: User
    redirect: Redirect


# ═══════════════════════════════════════════════════════════════════════════════
# Auth Gateway — Remote Side of the Session
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Grant:
    """
    A token issued by the backend.

    user is None for refresh grants. expires_in is the raw server value
    (seconds, or a duration string like "15m").
    """

    access_token: str = field(repr=False)
    user: User | None = None
    expires_in: str | int | None = None


@dataclass(frozen=True, slots=True)
class Verification:
    valid: bool
    user: User | None = None
    expires_in: str | int | None = None


class AuthGateway(Protocol):
    """Remote authentication endpoints the Session Manager relies on."""

    async def login(self, credentials: Credentials) -> Result[Grant, StorefrontError]: ...

    async def register(self, registration: Registration) -> Result[Grant, StorefrontError]: ...

    async def refresh(self, token: str) -> Result[Grant, StorefrontError]: ...

    async def verify(self, token: str) -> Result[Verification, StorefrontError]: ...

    async def logout(self, token: str) -> Result[None, StorefrontError]: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Persistence Codec
# ═══════════════════════════════════════════════════════════════════════════════

USER_CODEC: TypeAdapter[User] = TypeAdapter(User)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Role",
    "User",
    "Credentials",
    "Registration",
    "Session",
    "SessionState",
    "ChangeReason",
    "SessionChange",
    "SessionSnapshot",
    "LoginOutcome",
    "Grant",
    "Verification",
    "AuthGateway",
    "USER_CODEC",
)

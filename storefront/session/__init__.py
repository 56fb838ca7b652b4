"""
Session — authentication lifecycle.

    from storefront import session as S

    manager = S.SessionManager(auth_api, tokens, policy=S.SessionPolicy())
    manager.restore()
    await manager.login(S.Credentials("ana@example.com", "secret"))
    manager.is_valid()
    await manager.logout()
"""

from storefront.session._types import (
    Role,
    User,
    Credentials,
    Registration,
    Session,
    SessionState,
    ChangeReason,
    SessionChange,
    SessionSnapshot,
    LoginOutcome,
    Grant,
    Verification,
    AuthGateway,
)
from storefront.session._policy import SessionPolicy, parse_expires_in, token_expiry
from storefront.session._timer import TimerAction, TimerHandle, Scheduler, AsyncioScheduler
from storefront.session._manager import SessionManager

__all__ = (
    # Types
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
    # Policy
    "SessionPolicy",
    "parse_expires_in",
    "token_expiry",
    # Timers
    "TimerAction",
    "TimerHandle",
    "Scheduler",
    "AsyncioScheduler",
    # Manager
    "SessionManager",
)

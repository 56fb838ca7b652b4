"""
Session Manager — owner of the authentication state machine.

    session = SessionManager(auth_api, TokenStore(storage), policy=SessionPolicy())
    session.restore()                      # startup

    match await session.login(Credentials(email, password)):
        case Ok(outcome):
            router.go(outcome.redirect.path)   # "/admin" or "/"
        case Error(err):
            form.show(err.message)

    session.is_valid()                     # pure, no I/O
    await session.logout()                 # always ends UNAUTHENTICATED

Only this class writes to the TokenStore. Every transition is pushed to
``session.changes``.
"""

from __future__ import annotations

import asyncio
import functools

import structlog
from pydantic import ValidationError

from storefront._errors import Errors, StorefrontError
from storefront._signal import Channel
from storefront._types import Clock, Error, Ok, Redirect, Result, system_clock
from storefront.session._policy import SessionPolicy
from storefront.session._timer import AsyncioScheduler, Scheduler, TimerHandle
from storefront.session._types import (
    USER_CODEC,
    AuthGateway,
    ChangeReason,
    Credentials,
    Grant,
    LoginOutcome,
    Registration,
    Session,
    SessionChange,
    SessionSnapshot,
    SessionState,
    User,
)
from storefront.store import StoredSession, TokenStore

logger = structlog.get_logger(__name__)


class SessionManager:
    def __init__(
        self,
        gateway: AuthGateway,
        tokens: TokenStore,
        *,
        policy: SessionPolicy | None = None,
        scheduler: Scheduler | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self._gateway = gateway
        self._tokens = tokens
        self._policy = policy or SessionPolicy()
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._clock = clock

        self._session: Session | None = None
        self._state = SessionState.UNAUTHENTICATED
        self._verified = False
        self._timer: TimerHandle | None = None
        self._renewal: asyncio.Future[Result[Session, Redirect]] | None = None
        self._renewal_generation = 0
        # Bumped by every login and invalidation. Results of calls started
        # under an older generation are discarded.
        self._generation = 0
        self._closed = False

        self.changes: Channel[SessionChange] = Channel("session")

    # ═══════════════════════════════════════════════════════════════════════════
    # Read-only accessors
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def policy(self) -> SessionPolicy:
        return self._policy

    @property
    def state(self) -> SessionState:
        self._current()
        return self._state

    @property
    def user(self) -> User | None:
        session = self._current()
        return session.user if session else None

    @property
    def access_token(self) -> str | None:
        session = self._current()
        return session.access_token if session else None

    @property
    def verified(self) -> bool:
        """Confirmed by the backend during this process lifetime."""
        return self._verified

    @property
    def renewal_pending(self) -> bool:
        return self._timer is not None

    def is_valid(self) -> bool:
        """User, token and expiry present, and expiry beyond the validity margin."""
        session = self._session
        if session is None:
            return False
        return self._policy.is_comfortably_valid(session.expires_at, self._clock())

    def snapshot(self) -> SessionSnapshot:
        session = self._current()
        return SessionSnapshot(
            state=self._state,
            user=session.user if session else None,
            expires_at=session.expires_at if session else None,
            verified=self._verified,
        )

    def landing_path(self, user: User | None = None) -> str:
        """Role-based landing page."""
        user = user or self.user
        if user is not None and user.is_admin:
            return self._policy.admin_path
        return self._policy.home_path

    def auth_headers(self) -> dict[str, str]:
        token = self.access_token
        if token is None:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def _current(self) -> Session | None:
        """
        The held session, cleared first when it has lapsed.

        A lapse happens when the renewal timer never ran (a suspended
        process). A renewal in flight settles the state itself.
        """
        session = self._session
        if session is None or self._renewing():
            return session
        if self._policy.is_comfortably_valid(session.expires_at, self._clock()):
            return session
        logger.info("session_lapsed", user_id=session.user.id, expires_at=session.expires_at)
        self._invalidate(ChangeReason.INVALIDATED, redirect=Redirect(self._policy.login_path))
        return None

    # ═══════════════════════════════════════════════════════════════════════════
    # Startup
    # ═══════════════════════════════════════════════════════════════════════════

    def restore(self) -> bool:
        """
        Restore a persisted session.

        A partial, malformed or nearly expired snapshot is cleared. The
        restored session is valid but unverified.
        """
        stored = self._tokens.load()
        if stored is None:
            if self._tokens.has_any():
                logger.info("session_snapshot_inconsistent")
                self._tokens.clear()
            return False

        try:
            user = USER_CODEC.validate_json(stored.user)
        except ValidationError:
            logger.info("session_snapshot_malformed")
            self._tokens.clear()
            return False

        if not self._policy.is_comfortably_valid(stored.expires_at, self._clock()):
            logger.info("session_snapshot_stale", user_id=user.id)
            self._tokens.clear()
            return False

        self._session = Session(user=user, access_token=stored.token, expires_at=stored.expires_at)
        self._state = SessionState.VALID
        self._verified = False
        self._arm_timer()
        logger.info("session_restored", user_id=user.id, expires_at=stored.expires_at)
        self.changes.emit(SessionChange(SessionState.VALID, user, ChangeReason.RESTORE))
        return True

    # ═══════════════════════════════════════════════════════════════════════════
    # Sign in
    # ═══════════════════════════════════════════════════════════════════════════

    async def login(self, credentials: Credentials) -> Result[LoginOutcome, StorefrontError]:
        result = await self._gateway.login(credentials)
        match result:
            case Ok(grant):
                return self._establish(grant, ChangeReason.LOGIN)
            case Error(err):
                logger.info("login_rejected", kind=err.kind.name, status=err.status)
                return Error(err)

    async def register(self, registration: Registration) -> Result[LoginOutcome, StorefrontError]:
        result = await self._gateway.register(registration)
        match result:
            case Ok(grant):
                return self._establish(grant, ChangeReason.REGISTER)
            case Error(err):
                logger.info("register_rejected", kind=err.kind.name, status=err.status)
                return Error(err)

    def _establish(self, grant: Grant, reason: ChangeReason) -> Result[LoginOutcome, StorefrontError]:
        if grant.user is None:
            return Error(Errors.rejected(200, "Authentication response carried no user"))

        expires_at = self._policy.expiry_of(grant.expires_in, grant.access_token, self._clock())
        self._generation += 1
        self._apply(Session(grant.user, grant.access_token, expires_at), reason)
        return Ok(LoginOutcome(user=grant.user, redirect=Redirect(self.landing_path(grant.user))))

    # ═══════════════════════════════════════════════════════════════════════════
    # Renewal
    # ═══════════════════════════════════════════════════════════════════════════

    async def silent_renew(self) -> Result[Session, Redirect]:
        """
        Exchange the current token for a fresh one.

        Concurrent callers for the same session share the attempt in
        flight. On failure the session is invalidated and the error is the
        login redirect.
        """
        if self._renewal is not None and self._renewing():
            return await asyncio.shield(self._renewal)

        session = self._session
        if session is None:
            return Error(Redirect(self._policy.login_path))

        self._state = SessionState.EXPIRING
        renewal = asyncio.ensure_future(self._renew(session, self._generation))
        self._renewal = renewal
        self._renewal_generation = self._generation
        renewal.add_done_callback(self._renewal_done)
        return await asyncio.shield(renewal)

    def _renewing(self) -> bool:
        """A renewal for the current session is in flight."""
        renewal = self._renewal
        return renewal is not None and not renewal.done() and self._renewal_generation == self._generation

    def _renewal_done(self, renewal: asyncio.Future[Result[Session, Redirect]]) -> None:
        if self._renewal is renewal:
            self._renewal = None

    async def _renew(self, session: Session, generation: int) -> Result[Session, Redirect]:
        result = await self._gateway.refresh(session.access_token)

        # Shutdown, logout or a new login happened while the refresh was in flight
        if self._closed or generation != self._generation:
            logger.info("renewal_discarded", user_id=session.user.id)
            if self._session is None:
                return Error(Redirect(self._policy.login_path))
            return Ok(self._session)

        match result:
            case Ok(grant):
                renewed = Session(
                    user=grant.user or session.user,
                    access_token=grant.access_token,
                    expires_at=self._policy.expiry_of(grant.expires_in, grant.access_token, self._clock()),
                )
                self._apply(renewed, ChangeReason.RENEWED)
                return Ok(renewed)
            case Error(err):
                logger.warning("renewal_failed", user_id=session.user.id, kind=err.kind.name)
                return Error(self.force_logout())

    async def _on_timer(self, generation: int) -> None:
        if self._closed or generation != self._generation:
            return
        self._timer = None
        await self.silent_renew()

    def _arm_timer(self) -> None:
        session = self._session
        if session is None:
            return
        self._disarm_timer()
        delay = self._policy.renewal_delay(session.expires_at, self._clock())
        self._timer = self._scheduler.call_later(
            delay, functools.partial(self._on_timer, self._generation)
        )
        logger.debug("renewal_scheduled", delay_seconds=delay)

    def _disarm_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # ═══════════════════════════════════════════════════════════════════════════
    # Verification
    # ═══════════════════════════════════════════════════════════════════════════

    async def verify(self) -> Result[bool, StorefrontError]:
        """
        Reconcile with the backend.

        Ok(True): confirmed, user snapshot refreshed.
        Ok(False): rejected or no session; local state is cleared quietly.
        Error: the backend could not be asked (session left untouched).
        """
        session = self._session
        if session is None:
            return Ok(False)

        generation = self._generation
        result = await self._gateway.verify(session.access_token)

        current = self._session
        if generation != self._generation or current is None or current.access_token != session.access_token:
            return Ok(self.is_valid())

        match result:
            case Ok(verification) if verification.valid:
                expires_at = current.expires_at
                if verification.expires_in is not None:
                    expires_at = self._policy.expiry_of(verification.expires_in, current.access_token, self._clock())
                self._apply(
                    Session(verification.user or current.user, current.access_token, expires_at),
                    ChangeReason.VERIFIED,
                )
                return Ok(True)
            case Ok(_):
                logger.info("session_rejected_on_verify", user_id=current.user.id)
                self._invalidate(ChangeReason.INVALIDATED, redirect=None)
                return Ok(False)
            case Error(err) if err.is_auth_failure:
                logger.info("session_rejected_on_verify", user_id=current.user.id)
                self._invalidate(ChangeReason.INVALIDATED, redirect=None)
                return Ok(False)
            case Error(err):
                logger.warning("verify_failed", kind=err.kind.name)
                return Error(err)

    # ═══════════════════════════════════════════════════════════════════════════
    # Sign out
    # ═══════════════════════════════════════════════════════════════════════════

    async def logout(self) -> Redirect:
        """
        Sign out. Local state is cleared before the remote call, which is
        best-effort.
        """
        session = self._session
        redirect = Redirect(self._policy.login_path)
        self._invalidate(ChangeReason.LOGOUT, redirect=redirect)

        if session is not None:
            result = await self._gateway.logout(session.access_token)
            if isinstance(result, Error):
                logger.warning("remote_logout_failed", kind=result.error.kind.name)
        return redirect

    def force_logout(self) -> Redirect:
        """Invalidate locally, without telling the backend."""
        redirect = Redirect(self._policy.login_path)
        self._invalidate(ChangeReason.INVALIDATED, redirect=redirect)
        return redirect

    # ═══════════════════════════════════════════════════════════════════════════
    # Transitions
    # ═══════════════════════════════════════════════════════════════════════════

    def _apply(self, session: Session, reason: ChangeReason) -> None:
        self._session = session
        self._state = SessionState.VALID
        self._verified = True
        self._tokens.save(
            StoredSession(
                token=session.access_token,
                user=USER_CODEC.dump_json(session.user).decode(),
                expires_at=session.expires_at,
            )
        )
        self._arm_timer()
        logger.info(
            "session_updated",
            reason=reason.name,
            user_id=session.user.id,
            expires_at=session.expires_at,
        )
        self.changes.emit(SessionChange(SessionState.VALID, session.user, reason))

    def _invalidate(self, reason: ChangeReason, *, redirect: Redirect | None) -> None:
        had_session = self._session is not None
        self._disarm_timer()
        self._generation += 1
        self._session = None
        self._state = SessionState.UNAUTHENTICATED
        self._verified = False
        self._tokens.clear()
        if had_session:
            logger.info("session_cleared", reason=reason.name)
            self.changes.emit(
                SessionChange(SessionState.UNAUTHENTICATED, None, reason, redirect)
            )

    async def aclose(self) -> None:
        """
        Stop the renewal schedule. The session itself is kept.

        A renewal already in flight is awaited so it settles while the
        transport is still open. Later refresh results are discarded.
        """
        self._disarm_timer()
        renewal = self._renewal
        if renewal is not None:
            await asyncio.wait({renewal})
        self._closed = True
        self._disarm_timer()


__all__ = ("SessionManager",)

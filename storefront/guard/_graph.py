"""
Access guards — route decisions as nodnod nodes.

Each guard is a polymorphic router over validated session-state nodes.
Cases are tried in order; a state node that does not hold raises
NodeError and the next case is tried.

Architecture:
    GuardSpec (injected)
         │
         ▼
    SpecNode
         │
         ├── OpenRouteNode      (capability NONE)
         ├── VerifiedNode ── PermittedNode
         ├── UnverifiedNode     (valid, not yet confirmed this process)
         └── AnonymousNode      (no valid session)
                   │
                   ▼
    MemberDecision / GuestDecision (@polymorphic)
                   │
                   ▼
    MemberDecisionNode / GuestDecisionNode

Guards read the session through its accessors and only ever change it by
delegating to verify().

Note: no 'from __future__ import annotations' here, nodnod reads the
type hints at runtime to resolve dependencies.
"""

from dataclasses import dataclass
from enum import Enum, auto

import structlog
from nodnod import NodeError, case, polymorphic

from storefront import _graph as G
from storefront._types import Allow, Decision, Error, Ok, Redirect
from storefront.session import SessionManager, User

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Input — Spec (injected)
# ═══════════════════════════════════════════════════════════════════════════════


class Capability(Enum):
    """What a route requires."""

    NONE = auto()
    AUTHENTICATED = auto()
    ADMIN = auto()  # Authenticated with the admin role


@dataclass(frozen=True)
class GuardSpec:
    session: SessionManager
    capability: Capability


def permits(capability: Capability, user: User) -> bool:
    if capability is Capability.ADMIN:
        return user.is_admin
    return True


def evaluate(spec: GuardSpec) -> Decision:
    """Decision from the current session state, without asking the backend."""
    session = spec.session
    if spec.capability is Capability.NONE:
        return Allow()
    user = session.user
    if user is None or not session.is_valid():
        return Redirect(session.policy.login_path)
    if permits(spec.capability, user):
        return Allow()
    return Redirect(session.policy.home_path)


# ═══════════════════════════════════════════════════════════════════════════════
# Entry Node
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class SpecNode:
    def __init__(self, spec: GuardSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, spec: GuardSpec) -> "SpecNode":
        return cls(spec)


# ═══════════════════════════════════════════════════════════════════════════════
# State Nodes — Each validates one session condition
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class OpenRouteNode:
    """Validates: route requires nothing."""

    def __init__(self, spec: GuardSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, spec_node: SpecNode) -> "OpenRouteNode":
        if spec_node.spec.capability is not Capability.NONE:
            raise NodeError("Route requires a session")
        return cls(spec_node.spec)


@G.node
class VerifiedNode:
    """Validates: session valid and confirmed by the backend."""

    def __init__(self, spec: GuardSpec, user: User) -> None:
        self.spec = spec
        self.user = user

    @classmethod
    def __compose__(cls, spec_node: SpecNode) -> "VerifiedNode":
        session = spec_node.spec.session
        user = session.user
        if not session.is_valid() or user is None:
            raise NodeError("No valid session")
        if not session.verified:
            raise NodeError("Not verified")
        return cls(spec_node.spec, user)


@G.node
class PermittedNode:
    """Validates: verified user has the required capability."""

    def __init__(self, verified: VerifiedNode) -> None:
        self.verified = verified

    @classmethod
    def __compose__(cls, verified: VerifiedNode) -> "PermittedNode":
        if not permits(verified.spec.capability, verified.user):
            raise NodeError("Capability missing")
        return cls(verified)


@G.node
class UnverifiedNode:
    """Validates: session valid but not yet confirmed in this process."""

    def __init__(self, spec: GuardSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, spec_node: SpecNode) -> "UnverifiedNode":
        session = spec_node.spec.session
        if not session.is_valid():
            raise NodeError("No valid session")
        if session.verified:
            raise NodeError("Already verified")
        return cls(spec_node.spec)


@G.node
class AnonymousNode:
    """Validates: no valid session."""

    def __init__(self, spec: GuardSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, spec_node: SpecNode) -> "AnonymousNode":
        if spec_node.spec.session.is_valid():
            raise NodeError("Session is valid")
        return cls(spec_node.spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Member Routes — Require a session (and maybe a role)
# ═══════════════════════════════════════════════════════════════════════════════


@polymorphic[Decision]
class MemberDecision:
    @case
    def open_route(cls, node: OpenRouteNode) -> Decision:
        return Allow()

    @case
    def permitted(cls, node: PermittedNode) -> Decision:
        return Allow()

    @case
    def insufficient_role(cls, node: VerifiedNode) -> Decision:
        """Reached only when PermittedNode failed."""
        logger.info("guard_role_denied", user_id=node.user.id, capability=node.spec.capability.name)
        return Redirect(node.spec.session.policy.home_path)

    @case
    async def verify_first(cls, node: UnverifiedNode) -> Decision:
        """Confirm the restored session, then decide on the fresh state."""
        match await node.spec.session.verify():
            case Ok(_):
                return evaluate(node.spec)
            case Error(err):
                logger.warning("guard_verify_failed", kind=err.kind.name)
                return Redirect(node.spec.session.policy.login_path)

    @case
    def denied(cls, node: AnonymousNode) -> Decision:
        return Redirect(node.spec.session.policy.login_path)


# ═══════════════════════════════════════════════════════════════════════════════
# Guest Routes — Login / register pages
# ═══════════════════════════════════════════════════════════════════════════════


@polymorphic[Decision]
class GuestDecision:
    @case
    def signed_in(cls, node: VerifiedNode) -> Decision:
        return Redirect(node.spec.session.landing_path(node.user))

    @case
    async def verify_first(cls, node: UnverifiedNode) -> Decision:
        session = node.spec.session
        match await session.verify():
            case Ok(True) if session.user is not None:
                return Redirect(session.landing_path(session.user))
            case Ok(_):
                return Allow()
            case Error(err):
                # The guest page stays reachable when the backend cannot answer
                logger.warning("guard_verify_failed", kind=err.kind.name)
                return Allow()

    @case
    def anonymous(cls, node: AnonymousNode) -> Decision:
        return Allow()


# ═══════════════════════════════════════════════════════════════════════════════
# Final Nodes
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class MemberDecisionNode:
    def __init__(self, decision: Decision) -> None:
        self.decision = decision

    @classmethod
    def __compose__(cls, outcome: MemberDecision) -> "MemberDecisionNode":
        return cls(outcome.value)


@G.node
class GuestDecisionNode:
    def __init__(self, decision: Decision) -> None:
        self.decision = decision

    @classmethod
    def __compose__(cls, outcome: GuestDecision) -> "GuestDecisionNode":
        return cls(outcome.value)


# ═══════════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════════


async def member_guard(
    session: SessionManager,
    capability: Capability = Capability.AUTHENTICATED,
) -> Decision:
    """Decide access to a route that requires capability."""
    final = await G.run(MemberDecisionNode).inject(GuardSpec(session, capability))
    logger.debug("guard_decision", capability=capability.name, decision=final.decision)
    return final.decision


async def auth_guard(session: SessionManager) -> Decision:
    return await member_guard(session, Capability.AUTHENTICATED)


async def admin_guard(session: SessionManager) -> Decision:
    return await member_guard(session, Capability.ADMIN)


async def guest_guard(session: SessionManager) -> Decision:
    """Login and registration pages: signed-in users go to their landing page."""
    final = await G.run(GuestDecisionNode).inject(GuardSpec(session, Capability.NONE))
    return final.decision


__all__ = (
    "Capability",
    "GuardSpec",
    "permits",
    "evaluate",
    "MemberDecision",
    "GuestDecision",
    "member_guard",
    "auth_guard",
    "admin_guard",
    "guest_guard",
)

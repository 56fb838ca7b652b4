"""
Guards — route-access decisions over the session.

    from storefront import guard as Gd

    match await Gd.admin_guard(session):
        case Allow():
            render()
        case Redirect(path):
            router.go(path)
"""

from storefront._types import Allow, Redirect, Decision
from storefront.guard._graph import (
    Capability,
    GuardSpec,
    permits,
    evaluate,
    member_guard,
    auth_guard,
    admin_guard,
    guest_guard,
)

__all__ = (
    "Allow",
    "Redirect",
    "Decision",
    "Capability",
    "GuardSpec",
    "permits",
    "evaluate",
    "member_guard",
    "auth_guard",
    "admin_guard",
    "guest_guard",
)

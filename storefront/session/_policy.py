"""
Session policy — renewal timing and navigation boundaries.
"""

from __future__ import annotations

import base64
import json
import re
from dataclasses import dataclass, replace
from datetime import timedelta

from storefront._types import Millis


def _ms(delta: timedelta) -> int:
    return int(delta.total_seconds() * 1000)


# ═══════════════════════════════════════════════════════════════════════════════
# Policy
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SessionPolicy:
    """
    Session timing configuration.

    Fluent builder pattern — chain methods to configure.

    Example:
        policy = (
            SessionPolicy()
            .with_renewal(lead=timedelta(minutes=10))
            .with_validity_margin(seconds=30)
            .with_paths(login="/signin")
        )

    renewal_lead: renew this long before expiry.
    renewal_floor: never schedule renewal sooner than this from now.
    validity_margin: a session is valid only while expiry is further away than this.
    default_lifetime: assumed token lifetime when the backend states none.
    """

    renewal_lead: timedelta = timedelta(minutes=5)
    renewal_floor: timedelta = timedelta(minutes=1)
    validity_margin: timedelta = timedelta(seconds=60)
    default_lifetime: timedelta = timedelta(hours=1)
    login_path: str = "/auth/login"
    home_path: str = "/"
    admin_path: str = "/admin"

    def with_renewal(
        self,
        *,
        lead: timedelta | None = None,
        floor: timedelta | None = None,
    ) -> SessionPolicy:
        """
        Set renewal timing.

        Example:
            .with_renewal(lead=timedelta(minutes=10), floor=timedelta(seconds=30))
        """
        return replace(
            self,
            renewal_lead=lead if lead is not None else self.renewal_lead,
            renewal_floor=floor if floor is not None else self.renewal_floor,
        )

    def with_validity_margin(
        self,
        *,
        seconds: float | None = None,
        delta: timedelta | None = None,
    ) -> SessionPolicy:
        if delta is not None:
            margin = delta
        elif seconds is not None:
            margin = timedelta(seconds=seconds)
        else:
            margin = self.validity_margin
        return replace(self, validity_margin=margin)

    def with_default_lifetime(
        self,
        *,
        seconds: float | None = None,
        minutes: float | None = None,
        hours: float | None = None,
        delta: timedelta | None = None,
    ) -> SessionPolicy:
        """
        Set the lifetime assumed for tokens issued without an expiry.

        Example:
            .with_default_lifetime(hours=24)
        """
        if delta is not None:
            lifetime = delta
        else:
            total_seconds = (seconds or 0) + (minutes or 0) * 60 + (hours or 0) * 3600
            lifetime = timedelta(seconds=total_seconds) if total_seconds > 0 else self.default_lifetime
        return replace(self, default_lifetime=lifetime)

    def with_paths(
        self,
        *,
        login: str | None = None,
        home: str | None = None,
        admin: str | None = None,
    ) -> SessionPolicy:
        return replace(
            self,
            login_path=login or self.login_path,
            home_path=home or self.home_path,
            admin_path=admin or self.admin_path,
        )

    # ───────────────────────────────────────────────────────────────────────────
    # Timing
    # ───────────────────────────────────────────────────────────────────────────

    def is_comfortably_valid(self, expires_at: Millis, now: Millis) -> bool:
        """Expiry must exceed now by more than the validity margin."""
        return expires_at - now > _ms(self.validity_margin)

    def renewal_delay(self, expires_at: Millis, now: Millis) -> float:
        """
        Seconds from now until silent renewal should run.

        expiry - lead, but at least the floor from now. The result is capped
        at the point where the session stops being valid (expiry - margin),
        so a short-lived token is renewed while it still works.
        """
        ahead = expires_at - _ms(self.renewal_lead) - now
        delay = max(ahead, _ms(self.renewal_floor))
        latest = max(expires_at - _ms(self.validity_margin) - now, 0)
        return min(delay, latest) / 1000

    def expiry_of(self, expires_in: str | int | None, token: str, now: Millis) -> Millis:
        """
        Absolute expiry for a freshly issued token.

        The server-stated lifetime wins, then the token's own exp claim,
        then default_lifetime.
        """
        lifetime = parse_expires_in(expires_in)
        if lifetime is not None:
            return now + _ms(lifetime)
        claimed = token_expiry(token)
        if claimed is not None:
            return claimed
        return now + _ms(self.default_lifetime)


# ═══════════════════════════════════════════════════════════════════════════════
# Expiry Parsing
# ═══════════════════════════════════════════════════════════════════════════════

_DURATION = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_expires_in(value: str | int | float | None) -> timedelta | None:
    """
    Parse a server lifetime.

        parse_expires_in(3600)     # 1 hour
        parse_expires_in("3600")   # 1 hour
        parse_expires_in("15m")    # 15 minutes
        parse_expires_in("7d")     # 7 days
        parse_expires_in("soon")   # None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return timedelta(seconds=value) if value > 0 else None
    match = _DURATION.match(value)
    if match is None:
        return None
    amount, unit = match.groups()
    seconds = float(amount) * _UNIT_SECONDS[unit]
    return timedelta(seconds=seconds) if seconds > 0 else None


def token_expiry(token: str) -> Millis | None:
    """exp claim of a JWT, in epoch ms. None for opaque or malformed tokens."""
    parts = token.split(".")
    if len(parts) != 3:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(parts[1] + "=" * (-len(parts[1]) % 4)))
    except (ValueError, UnicodeDecodeError):
        return None
    exp = payload.get("exp") if isinstance(payload, dict) else None
    if not isinstance(exp, int | float) or isinstance(exp, bool):
        return None
    return int(exp * 1000)


__all__ = (
    "SessionPolicy",
    "parse_expires_in",
    "token_expiry",
)

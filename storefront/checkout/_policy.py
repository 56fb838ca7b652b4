"""
Checkout policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True, slots=True)
class CheckoutPolicy:
    """
    Checkout configuration.

    Example:
        policy = CheckoutPolicy().with_ttl(minutes=15)

    selection_ttl is sliding: every interaction re-stamps the selection.
    """

    selection_ttl: timedelta = timedelta(minutes=30)

    def with_ttl(
        self,
        *,
        seconds: float | None = None,
        minutes: float | None = None,
        delta: timedelta | None = None,
    ) -> CheckoutPolicy:
        if delta is not None:
            return CheckoutPolicy(selection_ttl=delta)
        total_seconds = (seconds or 0) + (minutes or 0) * 60
        if total_seconds <= 0:
            return self
        return CheckoutPolicy(selection_ttl=timedelta(seconds=total_seconds))

    @property
    def ttl_ms(self) -> int:
        return int(self.selection_ttl.total_seconds() * 1000)


__all__ = ("CheckoutPolicy",)

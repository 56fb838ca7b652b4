"""
Core types for storefront.

Re-exports from kungfu + aliases shared by the session and checkout state machines.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

# ═══════════════════════════════════════════════════════════════════════════════
# Time
# ═══════════════════════════════════════════════════════════════════════════════

type Millis = int
"""Absolute instant, epoch milliseconds."""

type Clock = Callable[[], Millis]
"""Source of the current instant. Injected so tests can move time."""


def system_clock() -> Millis:
    return int(time.time() * 1000)


# ═══════════════════════════════════════════════════════════════════════════════
# Navigation Decisions
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Allow:
    """Navigation may proceed."""


@dataclass(frozen=True, slots=True)
class Redirect:
    """Navigation must go to path instead."""

    path: str


type Decision = Allow | Redirect

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Aliases
    "Lazy",
    "Millis",
    "Clock",
    "system_clock",
    # Navigation
    "Allow",
    "Redirect",
    "Decision",
)

"""
Storage types.
"""

from __future__ import annotations

from typing import Protocol

# ═══════════════════════════════════════════════════════════════════════════════
# Storage Protocol — Backends Implement This
# ═══════════════════════════════════════════════════════════════════════════════


class Storage(Protocol):
    """
    Durable synchronous key/value surface.

    Implementations must never raise: a backend that is unavailable
    behaves like an empty store that drops writes.

    Example:
        class ShelveStorage:
            def __init__(self, path: str) -> None:
                self._db = shelve.open(path)

            def get(self, key: str) -> str | None:
                return self._db.get(key)

            def set(self, key: str, value: str) -> None:
                self._db[key] = value

            def remove(self, key: str) -> None:
                self._db.pop(key, None)
    """

    def get(self, key: str) -> str | None:
        """Get value. Returns None when absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Set value, replacing any previous one."""
        ...

    def remove(self, key: str) -> None:
        """Remove key. Absent keys are ignored."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Storage — Process Lifetime (Default)
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryStorage:
    """
    In-memory storage scoped to the client process.

    Example:
        storage = MemoryStorage()
        storage.set("auth_token", "eyJ...")
    """

    __slots__ = ("_data",)

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> frozenset[str]:
        return frozenset(self._data)

    def __len__(self) -> int:
        return len(self._data)


# ═══════════════════════════════════════════════════════════════════════════════
# Null Storage — Non-Interactive Contexts
# ═══════════════════════════════════════════════════════════════════════════════


class NullStorage:
    """Storage for contexts without persistence: reads miss, writes vanish."""

    __slots__ = ()

    def get(self, key: str) -> str | None:
        return None

    def set(self, key: str, value: str) -> None:
        return None

    def remove(self, key: str) -> None:
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Storage",
    "MemoryStorage",
    "NullStorage",
)

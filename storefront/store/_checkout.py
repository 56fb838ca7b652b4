"""
Checkout state store — the persisted in-progress checkout selection.

Only the Checkout Orchestrator writes here. The payload is an opaque
string (JSON encoded by the owner); expiry is judged by the owner on read.
"""

from __future__ import annotations

from storefront.store._types import Storage


class CheckoutStateStore:
    SELECTION_KEY = "checkout_selection"

    __slots__ = ("_storage", "_key")

    def __init__(self, storage: Storage, namespace: str = "") -> None:
        self._storage = storage
        prefix = f"{namespace}:" if namespace else ""
        self._key = prefix + self.SELECTION_KEY

    def load(self) -> str | None:
        return self._storage.get(self._key)

    def save(self, payload: str) -> None:
        self._storage.set(self._key, payload)

    def clear(self) -> None:
        self._storage.remove(self._key)


__all__ = ("CheckoutStateStore",)
